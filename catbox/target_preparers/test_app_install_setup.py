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

"""Target preparer installing test APKs into a device user."""

import logging
from pathlib import Path
from typing import Optional

from catbox import catbox_error
from catbox import catbox_utils
from catbox.catbox_enum import ErrorIdentifier
from catbox.options import Option, option_class
from catbox.target_preparers.base_target_preparer import BaseTargetPreparer
from catbox.test_information import TestInformation

_GRANT_PERMISSIONS_ARG = '-g'


@option_class('test-app-install')
class TestAppInstallSetup(BaseTargetPreparer):
  """Installs the configured APK files for one user.

  Relative file names are looked up in the dependencies folder of the
  invocation first, then in the testcases dir.
  """

  __test__ = False

  test_file_names = Option(
      'test-file-name', repeatable=True,
      description='Name or path of an APK file to install.')
  install_args = Option(
      'install-arg', repeatable=True,
      description='Additional argument passed to adb install.')
  user_id = Option(
      'user-id', type=int, description='User to install the APKs for.')
  grant_permission = Option(
      'grant-permission', default=False, type=bool,
      description='Grant all runtime permissions at install time.')

  def _resolve_test_file(self, name: str,
                         test_info: TestInformation) -> Optional[Path]:
    path = Path(name).expanduser()
    if path.is_absolute():
      return path if path.is_file() else None
    for folder in (test_info.dependencies_folder,
                   catbox_utils.get_testcases_dir()):
      candidate = folder / path
      if candidate.is_file():
        return candidate
    return None

  def set_up(self, test_info: TestInformation) -> None:
    device = test_info.get_device()
    install_args = list(self.install_args)
    if self.grant_permission:
      install_args.append(_GRANT_PERMISSIONS_ARG)
    for name in self.test_file_names:
      apk = self._resolve_test_file(name, test_info)
      if apk is None:
        raise catbox_error.TargetSetupError(
            f'Test app {name} not found.',
            device.get_device_descriptor(),
            ErrorIdentifier.APK_INSTALLATION_FAILED)
      logging.debug('Installing %s for user %s.', apk, self.user_id)
      error = device.install_package_for_user(
          str(apk), True, self.user_id, *install_args)
      if error:
        raise catbox_error.TargetSetupError(
            f'Failed to install {apk.name} for user {self.user_id}: {error}',
            device.get_device_descriptor(),
            ErrorIdentifier.APK_INSTALLATION_FAILED)
      logging.info('Installed %s for user %s.', apk.name, self.user_id)
