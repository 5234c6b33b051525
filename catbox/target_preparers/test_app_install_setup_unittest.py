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

"""Unittests for test_app_install_setup."""

import os
from pathlib import Path
from unittest import mock

from pyfakefs import fake_filesystem_unittest

from catbox import catbox_error
from catbox import constants
from catbox import device
from catbox.catbox_enum import ErrorIdentifier
from catbox.options import set_options
from catbox.target_preparers import test_app_install_setup
from catbox.test_information import TestInformation


class TestAppInstallSetupTest(fake_filesystem_unittest.TestCase):
  """Tests for TestAppInstallSetup."""

  def setUp(self):
    self.setUpPyfakefs()
    self.fs.create_file('/deps/app.apk')
    self.fs.create_file('/testcases/other.apk')
    self.fs.create_file('/abs/path/abs.apk')
    env = mock.patch.dict(os.environ,
                          {constants.TESTCASES_DIR_ENV: '/testcases'})
    env.start()
    self.addCleanup(env.stop)
    self.device = mock.create_autospec(device.AdbDevice, instance=True)
    self.device.get_device_descriptor.return_value = device.DeviceDescriptor(
        'SERIAL', 'product', 'ONLINE')
    self.device.install_package_for_user.return_value = None
    self.test_info = TestInformation([self.device], Path('/deps'))
    self.preparer = test_app_install_setup.TestAppInstallSetup()

  def test_set_up_resolves_files_in_order(self):
    set_options(self.preparer, {
        'test-file-name': ['app.apk', 'other.apk', '/abs/path/abs.apk'],
        'user-id': 11,
    })

    self.preparer.set_up(self.test_info)

    self.device.install_package_for_user.assert_has_calls([
        mock.call('/deps/app.apk', True, 11),
        mock.call('/testcases/other.apk', True, 11),
        mock.call('/abs/path/abs.apk', True, 11),
    ])

  def test_set_up_passes_install_args_and_grant(self):
    set_options(self.preparer, {
        'test-file-name': 'app.apk',
        'install-arg': ['-d'],
        'grant-permission': True,
    })

    self.preparer.set_up(self.test_info)

    self.device.install_package_for_user.assert_called_once_with(
        '/deps/app.apk', True, None, '-d', '-g')

  def test_set_up_missing_file_raises(self):
    set_options(self.preparer, {'test-file-name': 'missing.apk'})

    with self.assertRaises(catbox_error.TargetSetupError) as cm:
      self.preparer.set_up(self.test_info)

    self.assertEqual(cm.exception.error_identifier,
                     ErrorIdentifier.APK_INSTALLATION_FAILED)
    self.device.install_package_for_user.assert_not_called()

  def test_set_up_install_failure_raises(self):
    set_options(self.preparer, {'test-file-name': 'app.apk', 'user-id': 11})
    self.device.install_package_for_user.return_value = (
        'Failure [INSTALL_FAILED_INSUFFICIENT_STORAGE]')

    with self.assertRaises(catbox_error.TargetSetupError) as cm:
      self.preparer.set_up(self.test_info)

    self.assertIn('INSTALL_FAILED_INSUFFICIENT_STORAGE', str(cm.exception))
    self.assertIn('user 11', str(cm.exception))


if __name__ == '__main__':
  fake_filesystem_unittest.main()
