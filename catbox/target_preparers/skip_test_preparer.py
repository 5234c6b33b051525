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

"""Target preparer skipping a test module based on a device property."""

import logging
import operator

from catbox import catbox_error
from catbox import catbox_utils
from catbox.catbox_enum import ErrorIdentifier
from catbox.options import Option, option_class
from catbox.target_preparers.base_target_preparer import BaseTargetPreparer
from catbox.test_information import TestInformation

# Operator name -> (comparison, symbol used in logs).
_SUPPORTED_OPERATORS = {
    'lt': (operator.lt, '<'),
    'gt': (operator.gt, '>'),
    'eq': (operator.eq, '=='),
    'neq': (operator.ne, '!='),
}


@option_class('skip-test-preparer')
class SkipTestPreparer(BaseTargetPreparer):
  """Skips the test module when an integer ADB property matches a condition.

  With comp-property=ro.build.version.sdk, comp-property-int-value=34 and
  int-comparison-operator=lt, the module is skipped on devices older than
  SDK 34.
  """

  comp_property = Option(
      'comp-property', description='ADB property of device to check against.')
  prop_value = Option(
      'comp-property-int-value', default=0, type=int,
      description='Integer value of ADB property to check against.')
  comp_operator = Option(
      'int-comparison-operator',
      description='Operator to compare expected and actual int values.')

  def set_up(self, test_info: TestInformation) -> None:
    # Skip this preparer if the options are not provided.
    if self.comp_property is None or self.comp_operator is None:
      catbox_utils.print_and_log_info(
          'Missing value for comp-property or int-comparison-operator. '
          'Skipping preparer.')
      return

    device = test_info.get_device()
    if self.comp_operator not in _SUPPORTED_OPERATORS:
      raise catbox_error.TargetSetupError(
          f'Incompatible operator {self.comp_operator}. Supported operators '
          f'are {",".join(_SUPPORTED_OPERATORS)}',
          device.get_device_descriptor(),
          ErrorIdentifier.OPTION_CONFIGURATION_ERROR)

    raw_value = device.execute_shell_command(
        f'getprop {self.comp_property}').strip()
    try:
      device_property_value = int(raw_value)
    except ValueError as e:
      raise catbox_error.TargetSetupError(
          f'{self.comp_property} returned a non integer value: {raw_value!r}',
          device.get_device_descriptor(),
          ErrorIdentifier.OPTION_CONFIGURATION_ERROR) from e
    logging.info('%s returned %d', self.comp_property, device_property_value)

    if self.should_skip(device_property_value):
      catbox_utils.print_and_log_info(
          'Skip condition satisfied. Skipping test module.')
      raise catbox_error.TargetSetupError(
          f'Test incompatible with {self.comp_property} = '
          f'{device_property_value}',
          device.get_device_descriptor(),
          ErrorIdentifier.TEST_SKIPPED_BY_PROPERTY)
    catbox_utils.print_and_log_info(
        'Skip condition not satisfied. Proceeding with test module.')

  def should_skip(self, device_property_value: int) -> bool:
    """Evaluates the skip condition against the device property value."""
    compare, symbol = _SUPPORTED_OPERATORS[self.comp_operator]
    logging.info('Checking skip condition %d %s %d', device_property_value,
                 symbol, self.prop_value)
    return compare(device_property_value, self.prop_value)
