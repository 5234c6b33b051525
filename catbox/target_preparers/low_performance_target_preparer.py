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

"""Target preparer putting the device in a low performance state.

The number of CPU cores and the memory size are limited through OEM
fastboot commands for the duration of the test module, then restored.
"""

import logging
import re
from typing import NamedTuple, Optional

from catbox import catbox_error
from catbox import constants
from catbox.catbox_enum import ErrorIdentifier
from catbox.device import AdbDevice, CommandResult
from catbox.options import Option, option_class
from catbox.target_preparers.base_target_preparer import BaseTargetPreparer
from catbox.test_information import TestInformation

# Lines of interest in the stderr of `fastboot oem device-info`:
#   (bootloader) Nr cpus: 4
#   (bootloader) Mem Size: 4G
_NR_CPUS_KEY = '(bootloader) Nr cpus'
_MEM_SIZE_KEY = '(bootloader) Mem Size'
_NON_DIGIT_RE = re.compile(r'\D')


class OemDeviceInfo(NamedTuple):
  """CPU and memory limits of the device, as reported by the bootloader."""
  nr_cpus: str
  mem: str


@option_class('low-performance')
class LowPerformanceTargetPreparer(BaseTargetPreparer):
  """Sets the device into a low performance state for the test duration."""

  nr_cpus = Option(
      'nr-cpus', default=constants.DEFAULT_LOW_PERF_NR_CPUS,
      description='Limit number of cores.')
  mem = Option(
      'mem', default=constants.DEFAULT_LOW_PERF_MEM_GB,
      description='Limit memory in gb.')

  def __init__(self):
    self._low_performance_device_info: Optional[OemDeviceInfo] = None
    self._initial_device_info: Optional[OemDeviceInfo] = None

  def set_up(self, test_info: TestInformation) -> None:
    self._low_performance_device_info = OemDeviceInfo(self.nr_cpus, self.mem)

    device = test_info.get_device()
    device.reboot_into_bootloader()
    try:
      self._initial_device_info = self._get_oem_device_info(device)
      self._execute_fastboot_command(
          device, f'oem nr-cpus {self._low_performance_device_info.nr_cpus}')
      self._execute_fastboot_command(
          device, f'oem mem {self._low_performance_device_info.mem}')
      if not self._is_device_in_low_performance_state(device):
        raise catbox_error.TargetSetupError(
            'Device is not in a low performance state after setUp.',
            device.get_device_descriptor(),
            ErrorIdentifier.INVOCATION_CANCELLED)
    finally:
      device.reboot()

  def tear_down(self, test_info: TestInformation, error) -> None:
    device = test_info.get_device()
    if self._initial_device_info is None:
      logging.warning('Initial device performance state is unknown; '
                      'nothing to restore.')
      return
    device.reboot_into_bootloader()
    try:
      self._execute_fastboot_command(
          device, f'oem mem {self._initial_device_info.mem}')
      self._execute_fastboot_command(
          device, f'oem nr-cpus {self._initial_device_info.nr_cpus}')
      if self._is_device_in_low_performance_state(device):
        raise catbox_error.TargetSetupError(
            'Failed to reset device to the initial state.')
    except catbox_error.TargetSetupError as e:
      logging.error(e)
      raise catbox_error.DeviceNotAvailableError(
          'Failed to reset device to the initial state.',
          device.get_serial_number(), e) from e
    finally:
      device.reboot()

  def _execute_fastboot_command(self, device: AdbDevice,
                                command: str) -> CommandResult:
    if not device.is_state_bootloader_or_fastbootd():
      raise catbox_error.TargetSetupError(
          'Device is not in fastboot mode',
          device.get_device_descriptor(),
          ErrorIdentifier.OPTION_CONFIGURATION_ERROR)
    logging.debug('Executing fastboot command: %s', command)
    result = device.execute_fastboot_command(*command.split())
    if result.exit_code != 0:
      raise catbox_error.TargetSetupError(
          f'Command {command} failed, stdout = [{result.stdout}], '
          f'stderr = [{result.stderr}].',
          device.get_device_descriptor(),
          ErrorIdentifier.OPTION_CONFIGURATION_ERROR)
    logging.debug('Command %s returned: stdout = [%s], stderr = [%s].',
                  command, result.stdout, result.stderr)
    return result

  def _get_oem_device_info(self, device: AdbDevice) -> OemDeviceInfo:
    mem = ''
    nr_cpus = ''
    result = self._execute_fastboot_command(device, 'oem device-info')
    for line in result.stderr.split('\n'):
      split = line.strip().split(': ')
      if len(split) != 2:
        continue
      if split[0] == _NR_CPUS_KEY:
        nr_cpus = split[1]
      if split[0] == _MEM_SIZE_KEY:
        mem = _NON_DIGIT_RE.sub('', split[1])
    if not nr_cpus.strip() or not mem.strip():
      raise catbox_error.TargetSetupError(
          "Couldn't get current memory or CPU cores values. "
          f'CPU: {nr_cpus}. Memory: {mem}.',
          device.get_device_descriptor(),
          ErrorIdentifier.OPTION_CONFIGURATION_ERROR)
    return OemDeviceInfo(nr_cpus, mem)

  def _is_device_in_low_performance_state(self, device: AdbDevice) -> bool:
    return self._low_performance_device_info == self._get_oem_device_info(
        device)
