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

"""Unittests for skip_test_preparer."""

from pathlib import Path
import unittest
from unittest import mock

from catbox import catbox_error
from catbox import device
from catbox.catbox_enum import ErrorIdentifier
from catbox.options import set_options
from catbox.target_preparers import skip_test_preparer
from catbox.test_information import TestInformation

_SDK_PROPERTY = 'ro.build.version.sdk'


class SkipTestPreparerTest(unittest.TestCase):
  """Tests for SkipTestPreparer."""

  def setUp(self):
    self.device = mock.create_autospec(device.AdbDevice, instance=True)
    self.device.get_device_descriptor.return_value = device.DeviceDescriptor(
        'SERIAL', 'product', 'ONLINE')
    self.test_info = TestInformation([self.device], Path('/deps'))
    self.preparer = skip_test_preparer.SkipTestPreparer()

  def _configure(self, operator_name, value=34):
    set_options(self.preparer, {
        'comp-property': _SDK_PROPERTY,
        'comp-property-int-value': value,
        'int-comparison-operator': operator_name,
    })

  def test_set_up_missing_options_does_nothing(self):
    set_options(self.preparer, {'comp-property': _SDK_PROPERTY})

    self.preparer.set_up(self.test_info)

    self.device.execute_shell_command.assert_not_called()

  def test_set_up_condition_met_raises_skip(self):
    self._configure('lt')
    self.device.execute_shell_command.return_value = '33\n'

    with self.assertRaises(catbox_error.TargetSetupError) as cm:
      self.preparer.set_up(self.test_info)

    self.assertEqual(cm.exception.error_identifier,
                     ErrorIdentifier.TEST_SKIPPED_BY_PROPERTY)
    self.assertEqual(cm.exception.message,
                     'Test incompatible with ro.build.version.sdk = 33')
    self.device.execute_shell_command.assert_called_once_with(
        'getprop ro.build.version.sdk')

  def test_set_up_condition_not_met_proceeds(self):
    self._configure('lt')
    self.device.execute_shell_command.return_value = '34\n'

    self.preparer.set_up(self.test_info)

  def test_set_up_unsupported_operator_raises(self):
    self._configure('le')

    with self.assertRaises(catbox_error.TargetSetupError) as cm:
      self.preparer.set_up(self.test_info)

    self.assertEqual(cm.exception.error_identifier,
                     ErrorIdentifier.OPTION_CONFIGURATION_ERROR)
    self.assertEqual(
        cm.exception.message,
        'Incompatible operator le. Supported operators are lt,gt,eq,neq')
    self.device.execute_shell_command.assert_not_called()

  def test_set_up_non_integer_property_raises(self):
    self._configure('eq')
    self.device.execute_shell_command.return_value = 'UpsideDownCake\n'

    with self.assertRaises(catbox_error.TargetSetupError):
      self.preparer.set_up(self.test_info)

  def test_should_skip_operators(self):
    self._configure('gt')
    self.assertTrue(self.preparer.should_skip(35))
    self.assertFalse(self.preparer.should_skip(34))

    self._configure('eq')
    self.assertTrue(self.preparer.should_skip(34))

    self._configure('neq')
    self.assertTrue(self.preparer.should_skip(33))
    self.assertFalse(self.preparer.should_skip(34))


if __name__ == '__main__':
  unittest.main()
