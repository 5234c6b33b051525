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

"""Target preparer simulating passenger load on multi-display AAOS devices.

A passenger user is created and started on every display which supports
visible background users. The preparer then launches a full screen video for
each passenger, so tests measure the driver experience under load.
"""

import logging
from typing import Dict

from catbox import catbox_error
from catbox import constants
from catbox.catbox_enum import CommandStatus, ErrorIdentifier
from catbox.device import AdbDevice
from catbox.options import Option, option_class
from catbox.target_preparers.base_target_preparer import BaseTargetPreparer
from catbox.target_preparers.test_app_install_setup import TestAppInstallSetup
from catbox.test_information import TestInformation

_TOS_ACCEPTED_KEY = 'android.car.KEY_USER_TOS_ACCEPTED'


@option_class('chrome-md-passenger-load')
class ChromeMdPassengerLoadPreparer(BaseTargetPreparer):
  """Creates a passenger user per display and plays a video for each."""

  skip_display_ids = Option(
      'skip-display-id', type=int, repeatable=True,
      description='Display id to skip passenger load for.')
  skip_loading = Option(
      'skip-passenger-loading', default=False, type=bool,
      description='Only create additional passenger users, skip loading them.')
  post_test_cleanup = Option(
      'post-test-cleanup', default=True, type=bool,
      description='Clean up users and uninstall test apks.')
  url = Option(
      'url', mandatory=True, description='Youtube video URL.')
  package = Option(
      'package', default=constants.DEFAULT_YOUTUBE_PACKAGE,
      description='Youtube package.')
  install_apk = Option(
      'install-apk', default=False, type=bool,
      description='Re-install a custom Youtube APK if necessary.')
  max_users = Option(
      'max-users', default=10, type=int,
      description='Maximum number of users to support.')
  test_file_names = Option(
      'test-app-file-name', repeatable=True,
      description='Full qualified path to the custom Youtube APK.')

  def __init__(self):
    self._display_to_created_users: Dict[int, int] = {}
    self._install_preparers = []

  @property
  def display_to_created_users(self) -> Dict[int, int]:
    return dict(self._display_to_created_users)

  def set_up(self, test_info: TestInformation) -> None:
    device = test_info.get_device()
    self._increase_supported_users(device)
    display_ids = (
        device.list_display_ids_for_starting_visible_background_users())
    for display_id in sorted(display_ids):
      user_id = self._create_and_start_user(device, display_id)
      logging.debug('Created and started new passenger user: %s on '
                    'Display: %s', user_id, display_id)
      self._display_to_created_users[display_id] = user_id
    self._skip_gtos(device)
    self._skip_suw(device)
    self._dismiss_chrome_dialogs(device)

    if not self.skip_loading and self.install_apk:
      self._install_apk(test_info)

    if self.skip_loading:
      logging.debug('Passenger loading is skipped.')
      return
    for display_id, user_id in self._display_to_created_users.items():
      if display_id in self.skip_display_ids:
        logging.debug('Skipping load on display %d', display_id)
        continue
      self._simulate_passenger_load(device, user_id)

  def tear_down(self, test_info: TestInformation, error) -> None:
    device = test_info.get_device()
    if not self.skip_loading:
      self._stop_test_apps(device)

    self._stop_users(device)

    if self.post_test_cleanup:
      for user_id in self._display_to_created_users.values():
        logging.debug('Removing user: %s', user_id)
        if not device.remove_user(user_id):
          logging.warning('Failed to remove user: %s', user_id)
    self._display_to_created_users.clear()
    self._install_preparers.clear()
    device.reboot()

  def _stop_test_apps(self, device: AdbDevice) -> None:
    logging.debug('Stopping the Youtube application for all the passengers')
    for user_id in self._display_to_created_users.values():
      stop_youtube = device.execute_shell_v2_command(
          f'am force-stop --user {user_id} {self.package}')
      stop_chrome = device.execute_shell_v2_command(
          f'am force-stop --user {user_id} {constants.CHROME_BETA_PACKAGE}')
      if stop_youtube.exit_code != 0 or stop_chrome.exit_code != 0:
        logging.debug('Failed to kill the Youtube application for user: %d',
                      user_id)

  def _dismiss_chrome_dialogs(self, device: AdbDevice) -> None:
    logging.debug('Dismissing initial Chrome Dialogs')
    result = device.execute_shell_v2_command(
        f'am set-debug-app --persistent {constants.CHROME_BETA_PACKAGE}')
    if result.exit_code != 0:
      logging.debug('Failed to dismiss Chrome dialogs')
      return
    logging.debug('Successfully dismissed initial Chrome Dialogs')

  def _increase_supported_users(self, device: AdbDevice) -> None:
    logging.debug('Temporarily increasing maximum supported users to %d',
                  self.max_users)
    result = device.execute_shell_v2_command(
        f'setprop fw.max_users {self.max_users}')
    if result.status != CommandStatus.SUCCESS:
      raise catbox_error.TargetSetupError(
          'Failed to increase the number of supported users',
          device.get_device_descriptor())
    logging.debug('Successfully increased the maximum supported users')

  def _create_and_start_user(self, device: AdbDevice, display_id: int) -> int:
    user_id = device.create_user(f'user-display-{display_id}')
    logging.debug('Created user with id %d for display %d', user_id,
                  display_id)
    if not device.start_visible_background_user(user_id, display_id, True):
      raise catbox_error.TargetSetupError(
          f'Device failed to switch to user {user_id}',
          device.get_device_descriptor(),
          ErrorIdentifier.USER_OPERATION_FAILED)
    logging.debug('Started background user %d for display %d', user_id,
                  display_id)
    return user_id

  def _stop_users(self, device: AdbDevice) -> None:
    logging.debug('Stopping all passenger users')
    for user_id in self._display_to_created_users.values():
      result = device.execute_shell_v2_command(f'am stop-user {user_id}')
      if result.exit_code != 0:
        logging.debug('Failed to stop the user: %d', user_id)
    logging.debug('Successfully stopped all passenger users')

  def _install_apk(self, test_info: TestInformation) -> None:
    for user_id in self._display_to_created_users.values():
      logging.debug('Installing the following test APKs in user %d: \n%s',
                    user_id, self.test_file_names)
      installer = TestAppInstallSetup()
      installer.user_id = user_id
      installer.grant_permission = True
      installer.test_file_names.extend(self.test_file_names)
      installer.install_args.extend(['-r', '-d'])
      installer.set_up(test_info)
      self._install_preparers.append(installer)

  def _simulate_passenger_load(self, device: AdbDevice, user_id: int) -> None:
    logging.debug('Launching the Youtube App for User: %d with url: %s',
                  user_id, self.url)
    launch_command = (
        f'am start --user {user_id} -a android.intent.action.VIEW '
        f'-e FullScreen true  -d "{self.url}" {self.package}')
    logging.debug('Youtube launch command: %s', launch_command)
    result = device.execute_shell_v2_command(launch_command)
    if result.status != CommandStatus.SUCCESS:
      raise catbox_error.TargetSetupError(
          f'Failed to launch the Youtube app for the user {user_id}',
          device.get_device_descriptor())
    logging.debug('Successfully launched the Youtube video for user: %d',
                  user_id)

  # Skips the Set-up wizard for all the passenger users.
  def _skip_suw(self, device: AdbDevice) -> None:
    logging.debug('Skipping set-up wizard for all passenger users')
    for user_id in self._display_to_created_users.values():
      result = device.execute_shell_v2_command(
          f'am start --user {user_id} -n '
          f'{constants.SETUP_WIZARD_EXIT_ACTIVITY}')
      if result.exit_code != 0:
        raise catbox_error.TargetSetupError(
            f'Failed to skip the set-up wizard for user: {user_id}',
            device.get_device_descriptor())
    logging.debug(
        'Successfully skipped set-up wizard across all passenger users')

  def _get_current_user(self, device: AdbDevice) -> int:
    logging.debug('Getting the current user ID')
    result = device.execute_shell_v2_command('am get-current-user')
    if result.exit_code != 0:
      raise catbox_error.TargetSetupError(
          'Failed to get the current user', device.get_device_descriptor())
    try:
      return int(result.stdout.strip())
    except ValueError as e:
      raise catbox_error.TargetSetupError(
          f'Unexpected current user: {result.stdout.strip()!r}',
          device.get_device_descriptor()) from e

  # Accepting the Google Terms of Service lifts the restrictions applied to
  # GAS apps for every user.
  def _skip_gtos(self, device: AdbDevice) -> None:
    logging.debug('Skipping gTOS on behalf of all users')
    if not device.is_adb_root():
      device.enable_adb_root()
    gas_package_names = [
        *constants.GAS_PACKAGES,
        self.package,
        constants.CHROME_BETA_PACKAGE,
    ]
    all_displays_to_users = dict(self._display_to_created_users)
    all_displays_to_users[constants.DEFAULT_DISPLAY_ID] = (
        self._get_current_user(device))
    for user_id in all_displays_to_users.values():
      for gas_package_name in gas_package_names:
        result = device.execute_shell_v2_command(
            f'pm enable --user {user_id} {gas_package_name} ')
        if result.exit_code != 0:
          raise catbox_error.TargetSetupError(
              f'Failed to skip gTOS for user: {user_id} and package: '
              f'{gas_package_name}',
              device.get_device_descriptor())
      result = device.execute_shell_v2_command(
          f'settings put secure --user {user_id} {_TOS_ACCEPTED_KEY} 2 ')
      if result.exit_code != 0:
        raise catbox_error.TargetSetupError(
            f'Failed to accept gTOS for user: {user_id}',
            device.get_device_descriptor())
    logging.debug('Successfully skipped gTOS across all passenger users')
