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

"""Unittests for device."""

import subprocess
import unittest
from unittest import mock

from catbox import catbox_error
from catbox import device
from catbox.catbox_enum import CommandStatus

_SERIAL = 'SERIAL123'


def _ok(stdout='', stderr=''):
  return device.CommandResult(CommandStatus.SUCCESS, 0, stdout, stderr)


class RunCommandTest(unittest.TestCase):
  """Tests for run_command."""

  @mock.patch('subprocess.run')
  def test_run_command_zero_exit_returns_success(self, mock_run):
    mock_run.return_value = subprocess.CompletedProcess(
        ['adb'], 0, stdout='out', stderr='')

    result = device.run_command(['adb', 'devices'], 5)

    self.assertEqual(result.status, CommandStatus.SUCCESS)
    self.assertEqual(result.exit_code, 0)
    self.assertEqual(result.stdout, 'out')

  @mock.patch('subprocess.run')
  def test_run_command_non_zero_exit_returns_failed(self, mock_run):
    mock_run.return_value = subprocess.CompletedProcess(
        ['adb'], 1, stdout='', stderr='error: no devices')

    result = device.run_command(['adb', 'devices'], 5)

    self.assertEqual(result.status, CommandStatus.FAILED)
    self.assertEqual(result.exit_code, 1)
    self.assertEqual(result.stderr, 'error: no devices')

  @mock.patch('subprocess.run')
  def test_run_command_timeout_returns_timed_out(self, mock_run):
    mock_run.side_effect = subprocess.TimeoutExpired(
        ['adb'], 5, output=b'partial')

    result = device.run_command(['adb', 'devices'], 5)

    self.assertEqual(result.status, CommandStatus.TIMED_OUT)
    self.assertIsNone(result.exit_code)
    self.assertEqual(result.stdout, 'partial')

  @mock.patch('subprocess.run', side_effect=FileNotFoundError('no adb'))
  def test_run_command_missing_binary_returns_exception(self, _):
    result = device.run_command(['adb', 'devices'], 5)

    self.assertEqual(result.status, CommandStatus.EXCEPTION)
    self.assertIn('no adb', result.stderr)


@mock.patch('catbox.device.run_command')
class AdbDeviceTest(unittest.TestCase):
  """Tests for AdbDevice."""

  def setUp(self):
    self.device = device.AdbDevice(_SERIAL)

  def test_execute_shell_command_returns_stdout(self, mock_run):
    mock_run.return_value = _ok('34\n')

    output = self.device.execute_shell_command('getprop ro.build.version.sdk')

    self.assertEqual(output, '34\n')
    mock_run.assert_called_once_with(
        ['adb', '-s', _SERIAL, 'shell', 'getprop ro.build.version.sdk'],
        mock.ANY)

  def test_execute_shell_command_timeout_raises(self, mock_run):
    mock_run.return_value = device.CommandResult(CommandStatus.TIMED_OUT)

    with self.assertRaises(catbox_error.DeviceNotAvailableError) as cm:
      self.device.execute_shell_command('ls')

    self.assertEqual(cm.exception.serial, _SERIAL)

  def test_execute_fastboot_command_uses_serial(self, mock_run):
    mock_run.return_value = _ok()

    self.device.execute_fastboot_command('oem', 'mem', '4', timeout=10)

    mock_run.assert_called_once_with(
        ['fastboot', '-s', _SERIAL, 'oem', 'mem', '4'], 10)

  def test_get_device_descriptor_reads_product(self, mock_run):
    mock_run.return_value = _ok('seahawk\n')

    descriptor = self.device.get_device_descriptor()

    self.assertEqual(
        descriptor, device.DeviceDescriptor(_SERIAL, 'seahawk', 'ONLINE'))
    self.assertEqual(str(descriptor),
                     '[serial=SERIAL123, product=seahawk, state=ONLINE]')

  def test_create_user_returns_id(self, mock_run):
    mock_run.return_value = _ok('Success: created user id 11\n')

    self.assertEqual(self.device.create_user('user-display-2'), 11)
    mock_run.assert_called_once_with(
        ['adb', '-s', _SERIAL, 'shell', 'pm create-user user-display-2'],
        mock.ANY)

  def test_create_user_without_success_raises(self, mock_run):
    mock_run.return_value = _ok('Error: couldn\'t create User.\n')

    with self.assertRaises(catbox_error.DeviceRuntimeError):
      self.device.create_user('user-display-2')

  def test_remove_user_checks_success_marker(self, mock_run):
    mock_run.side_effect = [_ok('Success: removed user\n'), _ok('Error\n')]

    self.assertTrue(self.device.remove_user(11))
    self.assertFalse(self.device.remove_user(12))

  def test_start_visible_background_user_with_wait(self, mock_run):
    mock_run.return_value = _ok('Success: user started on display 2\n')

    self.assertTrue(self.device.start_visible_background_user(11, 2, True))
    mock_run.assert_called_once_with(
        ['adb', '-s', _SERIAL, 'shell', 'am start-user -w --display 2 11'],
        mock.ANY)

  def test_start_visible_background_user_without_wait(self, mock_run):
    mock_run.return_value = _ok('Error: could not start user\n')

    self.assertFalse(self.device.start_visible_background_user(11, 2, False))
    mock_run.assert_called_once_with(
        ['adb', '-s', _SERIAL, 'shell', 'am start-user --display 2 11'],
        mock.ANY)

  def test_list_display_ids_parses_all_ids(self, mock_run):
    mock_run.return_value = _ok('[2, 3, 4]\n')

    displays = (
        self.device.list_display_ids_for_starting_visible_background_users())

    self.assertEqual(displays, {2, 3, 4})

  def test_is_adb_root(self, mock_run):
    mock_run.side_effect = [_ok('0\n'), _ok('2000\n')]

    self.assertTrue(self.device.is_adb_root())
    self.assertFalse(self.device.is_adb_root())

  def test_is_state_bootloader_or_fastbootd_matches_serial(self, mock_run):
    mock_run.return_value = _ok(f'OTHER\tfastboot\n{_SERIAL}\tfastboot\n')

    self.assertTrue(self.device.is_state_bootloader_or_fastbootd())

  def test_is_state_bootloader_or_fastbootd_other_device(self, mock_run):
    mock_run.return_value = _ok('OTHER\tfastboot\n')

    self.assertFalse(self.device.is_state_bootloader_or_fastbootd())

  def test_install_package_for_user_success(self, mock_run):
    mock_run.return_value = _ok('Performing Streamed Install\nSuccess\n')

    error = self.device.install_package_for_user(
        '/tmp/app.apk', True, 11, '-g', '-r', '-d')

    self.assertIsNone(error)
    mock_run.assert_called_once_with(
        ['adb', '-s', _SERIAL, 'install', '--user', '11', '-r', '-g', '-d',
         '/tmp/app.apk'],
        mock.ANY)

  def test_install_package_for_all_users_omits_user_flag(self, mock_run):
    mock_run.return_value = _ok('Success\n')

    self.device.install_package_for_user('/tmp/app.apk', False, None)

    mock_run.assert_called_once_with(
        ['adb', '-s', _SERIAL, 'install', '/tmp/app.apk'], mock.ANY)

  def test_install_package_for_user_failure_returns_error(self, mock_run):
    mock_run.return_value = device.CommandResult(
        CommandStatus.FAILED, 1, '',
        'Failure [INSTALL_FAILED_VERSION_DOWNGRADE]')

    error = self.device.install_package_for_user('/tmp/app.apk', True, 11)

    self.assertEqual(error, 'Failure [INSTALL_FAILED_VERSION_DOWNGRADE]')

  @mock.patch('time.sleep')
  def test_reboot_waits_for_disconnect_before_boot_completed(
      self, _, mock_run):
    mock_run.side_effect = [
        _ok(''),  # fastboot devices
        _ok(''),  # adb reboot
        _ok(''),  # adb wait-for-disconnect
        _ok(''),  # adb wait-for-device
        _ok('0\n'),
        _ok('1\n'),
    ]

    self.device.reboot()

    commands = [c.args[0][3:] for c in mock_run.call_args_list[1:]]
    self.assertEqual(commands, [
        ['reboot'], ['wait-for-disconnect'], ['wait-for-device'],
        ['shell', 'getprop sys.boot_completed'],
        ['shell', 'getprop sys.boot_completed']])

  @mock.patch('time.sleep')
  def test_reboot_from_fastboot_waits_until_serial_is_gone(
      self, _, mock_run):
    in_fastboot = _ok(f'{_SERIAL}\tfastboot\n')
    mock_run.side_effect = [
        in_fastboot,  # fastboot devices
        _ok(''),  # fastboot reboot
        in_fastboot,  # still listed
        _ok(''),  # gone
        _ok(''),  # adb wait-for-device
        _ok('1\n'),
    ]

    self.device.reboot()

    commands = [c.args[0] for c in mock_run.call_args_list]
    self.assertEqual(commands[1], ['fastboot', '-s', _SERIAL, 'reboot'])
    self.assertEqual(commands[2:4],
                     [['fastboot', 'devices'], ['fastboot', 'devices']])
    self.assertEqual(commands[4], ['adb', '-s', _SERIAL, 'wait-for-device'])
    self.assertEqual(mock_run.call_count, 6)

  @mock.patch('time.sleep')
  @mock.patch('time.monotonic', side_effect=[0, 0, 1000])
  def test_reboot_into_bootloader_timeout_raises(self, _, __, mock_run):
    mock_run.return_value = _ok('')

    with self.assertRaises(catbox_error.DeviceNotAvailableError):
      self.device.reboot_into_bootloader()

    mock_run.assert_any_call(
        ['adb', '-s', _SERIAL, 'reboot', 'bootloader'], mock.ANY)


if __name__ == '__main__':
  unittest.main()
