# Copyright 2024, The Android Open Source Project
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Unittests for chrome_md_passenger_load_preparer."""

from pathlib import Path
import unittest
from unittest import mock

from catbox import catbox_error
from catbox import device
from catbox.catbox_enum import CommandStatus, ErrorIdentifier
from catbox.options import set_options
from catbox.target_preparers import chrome_md_passenger_load_preparer
from catbox.target_preparers.test_app_install_setup import TestAppInstallSetup
from catbox.test_information import TestInformation

_URL = 'https://www.youtube.com/watch?v=abc'
_YOUTUBE = 'com.google.android.apps.automotive.youtube'
_CURRENT_USER = 10


def _result(exit_code=0, stdout=''):
  status = CommandStatus.SUCCESS if exit_code == 0 else CommandStatus.FAILED
  return device.CommandResult(status, exit_code, stdout, '')


class ChromeMdPassengerLoadPreparerTest(unittest.TestCase):
  """Tests for ChromeMdPassengerLoadPreparer."""

  def setUp(self):
    self.device = mock.create_autospec(device.AdbDevice, instance=True)
    self.device.get_device_descriptor.return_value = device.DeviceDescriptor(
        'SERIAL', 'product', 'ONLINE')
    list_displays = (
        self.device.list_display_ids_for_starting_visible_background_users)
    list_displays.return_value = {3, 2}
    self.device.create_user.side_effect = [11, 12]
    self.device.start_visible_background_user.return_value = True
    self.device.is_adb_root.return_value = True
    self.device.remove_user.return_value = True
    self.failing_commands = set()
    self.device.execute_shell_v2_command.side_effect = self._shell
    self.test_info = TestInformation([self.device], Path('/deps'))
    self.preparer = (
        chrome_md_passenger_load_preparer.ChromeMdPassengerLoadPreparer())
    set_options(self.preparer, {'url': _URL})

  def _shell(self, command):
    if any(command.startswith(prefix) for prefix in self.failing_commands):
      return _result(1)
    if command == 'am get-current-user':
      return _result(stdout=f'{_CURRENT_USER}\n')
    return _result()

  def _shell_commands(self):
    return [c.args[0] for c in
            self.device.execute_shell_v2_command.call_args_list]

  def test_set_up_creates_user_per_display(self):
    self.preparer.set_up(self.test_info)

    self.assertEqual(self.preparer.display_to_created_users, {2: 11, 3: 12})
    self.device.create_user.assert_has_calls(
        [mock.call('user-display-2'), mock.call('user-display-3')])
    self.device.start_visible_background_user.assert_has_calls(
        [mock.call(11, 2, True), mock.call(12, 3, True)])
    self.assertEqual(self._shell_commands()[0], 'setprop fw.max_users 10')

  def test_set_up_launches_video_for_each_passenger(self):
    self.preparer.set_up(self.test_info)

    commands = self._shell_commands()
    for user_id in (11, 12):
      self.assertIn(
          f'am start --user {user_id} -a android.intent.action.VIEW '
          f'-e FullScreen true  -d "{_URL}" {_YOUTUBE}', commands)

  def test_set_up_skips_gtos_and_suw(self):
    self.preparer.set_up(self.test_info)

    commands = self._shell_commands()
    for user_id in (11, 12, _CURRENT_USER):
      self.assertIn(f'pm enable --user {user_id} com.android.vending ',
                    commands)
      self.assertIn(
          f'settings put secure --user {user_id} '
          'android.car.KEY_USER_TOS_ACCEPTED 2 ', commands)
    for user_id in (11, 12):
      self.assertIn(
          f'am start --user {user_id} -n '
          'com.google.android.car.setupwizard/.ExitActivity', commands)
    self.assertIn('am set-debug-app --persistent com.chrome.beta', commands)

  def test_set_up_enables_root_when_needed(self):
    self.device.is_adb_root.return_value = False

    self.preparer.set_up(self.test_info)

    self.device.enable_adb_root.assert_called_once_with()

  def test_set_up_skip_display_id_does_not_launch(self):
    set_options(self.preparer, {'skip-display-id': [3]})

    self.preparer.set_up(self.test_info)

    launches = [c for c in self._shell_commands()
                if 'android.intent.action.VIEW' in c]
    self.assertEqual(len(launches), 1)
    self.assertIn('--user 11 ', launches[0])

  def test_set_up_max_users_failure_raises(self):
    self.failing_commands.add('setprop fw.max_users')

    with self.assertRaises(catbox_error.TargetSetupError):
      self.preparer.set_up(self.test_info)

    self.device.create_user.assert_not_called()

  def test_set_up_start_user_failure_raises(self):
    self.device.start_visible_background_user.return_value = False

    with self.assertRaises(catbox_error.TargetSetupError) as cm:
      self.preparer.set_up(self.test_info)

    self.assertEqual(cm.exception.error_identifier,
                     ErrorIdentifier.USER_OPERATION_FAILED)
    self.assertIn('Device failed to switch to user 11',
                  str(cm.exception))

  def test_set_up_launch_failure_raises(self):
    self.failing_commands.add('am start --user 12 -a')

    with self.assertRaises(catbox_error.TargetSetupError) as cm:
      self.preparer.set_up(self.test_info)

    self.assertIn('user 12', str(cm.exception))

  def test_set_up_gtos_failure_raises(self):
    self.failing_commands.add('settings put secure')

    with self.assertRaises(catbox_error.TargetSetupError):
      self.preparer.set_up(self.test_info)

  @mock.patch.object(TestAppInstallSetup, 'set_up', autospec=True)
  def test_set_up_installs_apk_for_each_passenger(self, mock_install):
    set_options(self.preparer, {'install-apk': True,
                                'test-app-file-name': ['youtube.apk']})

    self.preparer.set_up(self.test_info)

    self.assertEqual(mock_install.call_count, 2)
    installers = [c.args[0] for c in mock_install.call_args_list]
    self.assertEqual([i.user_id for i in installers], [11, 12])
    for installer in installers:
      self.assertTrue(installer.grant_permission)
      self.assertEqual(installer.test_file_names, ['youtube.apk'])
      self.assertEqual(installer.install_args, ['-r', '-d'])

  @mock.patch.object(TestAppInstallSetup, 'set_up', autospec=True)
  def test_set_up_skip_loading_does_not_install_or_launch(self, mock_install):
    set_options(self.preparer, {'install-apk': True,
                                'skip-passenger-loading': True})

    self.preparer.set_up(self.test_info)

    mock_install.assert_not_called()
    self.assertFalse(any('android.intent.action.VIEW' in c
                         for c in self._shell_commands()))

  def test_tear_down_skip_loading_does_not_stop_apps(self):
    set_options(self.preparer, {'skip-passenger-loading': True})
    self.preparer.set_up(self.test_info)
    self.device.execute_shell_v2_command.reset_mock()

    self.preparer.tear_down(self.test_info, None)

    self.assertFalse(any(c.startswith('am force-stop')
                         for c in self._shell_commands()))
    self.assertIn('am stop-user 11', self._shell_commands())

  def test_set_up_dismiss_dialogs_failure_is_only_logged(self):
    self.failing_commands.add('am set-debug-app')

    self.preparer.set_up(self.test_info)

    self.assertTrue(any('android.intent.action.VIEW' in c
                        for c in self._shell_commands()))

  def test_tear_down_removes_users_and_reboots(self):
    self.preparer.set_up(self.test_info)
    self.device.execute_shell_v2_command.reset_mock()

    self.preparer.tear_down(self.test_info, None)

    commands = self._shell_commands()
    self.assertIn(f'am force-stop --user 11 {_YOUTUBE}', commands)
    self.assertIn('am force-stop --user 12 com.chrome.beta', commands)
    self.assertIn('am stop-user 11', commands)
    self.assertIn('am stop-user 12', commands)
    self.device.remove_user.assert_has_calls(
        [mock.call(11), mock.call(12)])
    self.device.reboot.assert_called_once_with()
    self.assertEqual(self.preparer.display_to_created_users, {})

  def test_tear_down_without_cleanup_keeps_users(self):
    set_options(self.preparer, {'post-test-cleanup': False})
    self.preparer.set_up(self.test_info)

    self.preparer.tear_down(self.test_info, None)

    self.device.remove_user.assert_not_called()
    self.device.reboot.assert_called_once_with()
    self.assertEqual(self.preparer.display_to_created_users, {})


  def test_tear_down_stop_failures_are_only_logged(self):
    self.preparer.set_up(self.test_info)
    self.failing_commands.update({'am force-stop', 'am stop-user'})
    self.device.remove_user.return_value = False

    self.preparer.tear_down(self.test_info, None)

    self.assertIn('am stop-user 12', self._shell_commands())
    self.device.remove_user.assert_has_calls(
        [mock.call(11), mock.call(12)])
    self.device.reboot.assert_called_once_with()
    self.assertEqual(self.preparer.display_to_created_users, {})

if __name__ == '__main__':
  unittest.main()
