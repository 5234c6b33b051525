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

"""Unittests for low_performance_target_preparer."""

from pathlib import Path
import unittest
from unittest import mock

from catbox import catbox_error
from catbox import device
from catbox.catbox_enum import CommandStatus, ErrorIdentifier
from catbox.options import set_options
from catbox.target_preparers import low_performance_target_preparer as lp
from catbox.test_information import TestInformation

_INITIAL_INFO = ('(bootloader) Nr cpus: 8\n'
                 '(bootloader) Mem Size: 12G\n'
                 'OKAY [  0.010s]\n')
_LOW_PERF_INFO = ('(bootloader) Nr cpus: 4\n'
                  '(bootloader) Mem Size: 4G\n')


def _fastboot_result(stderr='', exit_code=0):
  status = CommandStatus.SUCCESS if exit_code == 0 else CommandStatus.FAILED
  return device.CommandResult(status, exit_code, '', stderr)


class LowPerformanceTargetPreparerTest(unittest.TestCase):
  """Tests for LowPerformanceTargetPreparer."""

  def setUp(self):
    self.device = mock.create_autospec(device.AdbDevice, instance=True)
    self.device.get_device_descriptor.return_value = device.DeviceDescriptor(
        'SERIAL', 'product', 'FASTBOOT')
    self.device.get_serial_number.return_value = 'SERIAL'
    self.device.is_state_bootloader_or_fastbootd.return_value = True
    self.device_info = [_INITIAL_INFO]
    self.device.execute_fastboot_command.side_effect = self._fastboot
    self.test_info = TestInformation([self.device], Path('/deps'))
    self.preparer = lp.LowPerformanceTargetPreparer()

  def _fastboot(self, *args, **_):
    if args == ('oem', 'device-info'):
      return _fastboot_result(self.device_info[0])
    if args[:2] == ('oem', 'nr-cpus') and args[2] == '4':
      self.device_info[0] = _LOW_PERF_INFO
    if args[:2] == ('oem', 'nr-cpus') and args[2] == '8':
      self.device_info[0] = _INITIAL_INFO
    return _fastboot_result()

  def _fastboot_commands(self):
    return [' '.join(c.args) for c in
            self.device.execute_fastboot_command.call_args_list]

  def test_set_up_limits_cpus_and_memory(self):
    self.preparer.set_up(self.test_info)

    self.device.reboot_into_bootloader.assert_called_once_with()
    self.assertEqual(self._fastboot_commands(), [
        'oem device-info', 'oem nr-cpus 4', 'oem mem 4', 'oem device-info'])
    self.device.reboot.assert_called_once_with()

  def test_set_up_sends_configured_limits(self):
    set_options(self.preparer, {'nr-cpus': '2', 'mem': '3'})

    with self.assertRaises(catbox_error.TargetSetupError):
      self.preparer.set_up(self.test_info)

    self.assertIn('oem nr-cpus 2', self._fastboot_commands())
    self.assertIn('oem mem 3', self._fastboot_commands())

  def test_set_up_state_not_reached_raises_and_reboots(self):
    self.device.execute_fastboot_command.side_effect = (
        lambda *args, **_: _fastboot_result(_INITIAL_INFO))

    with self.assertRaises(catbox_error.TargetSetupError) as cm:
      self.preparer.set_up(self.test_info)

    self.assertEqual(cm.exception.error_identifier,
                     ErrorIdentifier.INVOCATION_CANCELLED)
    self.device.reboot.assert_called_once_with()

  def test_set_up_not_in_fastboot_raises(self):
    self.device.is_state_bootloader_or_fastbootd.return_value = False

    with self.assertRaises(catbox_error.TargetSetupError) as cm:
      self.preparer.set_up(self.test_info)

    self.assertEqual(cm.exception.error_identifier,
                     ErrorIdentifier.OPTION_CONFIGURATION_ERROR)
    self.device.execute_fastboot_command.assert_not_called()
    self.device.reboot.assert_called_once_with()

  def test_set_up_command_failure_raises(self):
    self.device.execute_fastboot_command.side_effect = [
        _fastboot_result(_INITIAL_INFO),
        _fastboot_result('unknown command', exit_code=1),
    ]

    with self.assertRaises(catbox_error.TargetSetupError) as cm:
      self.preparer.set_up(self.test_info)

    self.assertIn('unknown command', str(cm.exception))

  def test_set_up_missing_device_info_raises(self):
    self.device_info[0] = '(bootloader) Nr cpus: 8\n'

    with self.assertRaises(catbox_error.TargetSetupError) as cm:
      self.preparer.set_up(self.test_info)

    self.assertIn("Couldn't get current memory or CPU cores values",
                  str(cm.exception))

  def test_tear_down_restores_initial_state(self):
    self.preparer.set_up(self.test_info)
    self.device.execute_fastboot_command.reset_mock()

    self.preparer.tear_down(self.test_info, None)

    self.assertEqual(self._fastboot_commands(), [
        'oem mem 12', 'oem nr-cpus 8', 'oem device-info'])
    self.assertEqual(self.device.reboot.call_count, 2)

  def test_tear_down_still_low_performance_raises_device_not_available(self):
    self.preparer.set_up(self.test_info)
    self.device.execute_fastboot_command.side_effect = (
        lambda *args, **_: _fastboot_result(_LOW_PERF_INFO))

    with self.assertRaises(catbox_error.DeviceNotAvailableError) as cm:
      self.preparer.tear_down(self.test_info, None)

    self.assertEqual(cm.exception.serial, 'SERIAL')
    self.assertIsInstance(cm.exception.cause, catbox_error.TargetSetupError)
    self.assertEqual(self.device.reboot.call_count, 2)

  def test_tear_down_without_set_up_does_nothing(self):
    self.preparer.tear_down(self.test_info, None)

    self.device.reboot_into_bootloader.assert_not_called()
    self.device.reboot.assert_not_called()


if __name__ == '__main__':
  unittest.main()
