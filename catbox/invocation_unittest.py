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

"""Unittests for invocation."""

from pathlib import Path
import unittest
from unittest import mock

from catbox import catbox_error
from catbox import device
from catbox import invocation
from catbox.catbox_enum import ExitCode
from catbox.configuration import Configuration
from catbox.runners.remote_test import RemoteTest
from catbox.target_preparers.base_target_preparer import BaseTargetPreparer
from catbox.test_information import TestInformation


class InvocationTest(unittest.TestCase):
  """Tests for Invocation."""

  def setUp(self):
    self.events = []
    dut = mock.create_autospec(device.AdbDevice, instance=True)
    self.test_info = TestInformation([dut], Path('/deps'))

  def _preparer(self, name, set_up_error=None, tear_down_error=None,
                disabled=False, tear_down_disabled=False):
    preparer = mock.create_autospec(BaseTargetPreparer, instance=True)
    preparer.ALIAS = name
    preparer.is_disabled.return_value = disabled
    preparer.is_tear_down_disabled.return_value = tear_down_disabled

    def set_up(_):
      self.events.append(f'{name}.set_up')
      if set_up_error:
        raise set_up_error

    def tear_down(_, error):
      self.events.append(f'{name}.tear_down({type(error).__name__})')
      if tear_down_error:
        raise tear_down_error

    preparer.set_up.side_effect = set_up
    preparer.tear_down.side_effect = tear_down
    return preparer

  def _test(self, name, failure=None):
    test = mock.create_autospec(RemoteTest, instance=True)
    test.ALIAS = name

    def run(_, listener):
      self.events.append(f'{name}.run')
      listener.test_run_started(name, 1)
      if failure:
        listener.test_run_failed(failure)
      listener.test_run_ended(0)

    test.run.side_effect = run
    return test

  def _run(self, preparers, tests=()):
    config = Configuration(list(preparers), list(tests))
    return invocation.Invocation(config, self.test_info).run()

  def test_run_sets_up_in_order_and_tears_down_in_reverse(self):
    exit_code = self._run(
        [self._preparer('a'), self._preparer('b')], [self._test('t')])

    self.assertEqual(exit_code, ExitCode.SUCCESS)
    self.assertEqual(self.events, [
        'a.set_up', 'b.set_up', 't.run',
        'b.tear_down(NoneType)', 'a.tear_down(NoneType)'])

  def test_run_set_up_failure_skips_rest_and_tears_down_started(self):
    error = catbox_error.TargetSetupError('boom')

    exit_code = self._run(
        [self._preparer('a'), self._preparer('b', set_up_error=error),
         self._preparer('c')],
        [self._test('t')])

    self.assertEqual(exit_code, ExitCode.SETUP_FAILURE)
    self.assertEqual(self.events, [
        'a.set_up', 'b.set_up',
        'b.tear_down(TargetSetupError)', 'a.tear_down(TargetSetupError)'])

  def test_run_tear_down_failure_does_not_stop_other_tear_downs(self):
    lost = catbox_error.DeviceNotAvailableError('lost', 'SERIAL')

    exit_code = self._run(
        [self._preparer('a'), self._preparer('b', tear_down_error=lost)])

    self.assertEqual(self.events, [
        'a.set_up', 'b.set_up',
        'b.tear_down(NoneType)', 'a.tear_down(NoneType)'])
    self.assertEqual(exit_code, ExitCode.DEVICE_NOT_AVAILABLE)

  def test_run_first_failure_decides_exit_code(self):
    lost = catbox_error.DeviceNotAvailableError('lost', 'SERIAL')
    broken = catbox_error.TargetSetupError('x')

    exit_code = self._run([
        self._preparer('a', tear_down_error=broken),
        self._preparer('b', set_up_error=lost),
    ])

    self.assertEqual(exit_code, ExitCode.DEVICE_NOT_AVAILABLE)

  def test_run_disabled_preparer_is_skipped(self):
    exit_code = self._run([
        self._preparer('a', disabled=True),
        self._preparer('b', tear_down_disabled=True),
    ])

    self.assertEqual(exit_code, ExitCode.SUCCESS)
    self.assertEqual(self.events, ['b.set_up'])

  def test_run_test_failure_returns_test_failure(self):
    exit_code = self._run([self._preparer('a')],
                          [self._test('t1', failure='oops'), self._test('t2')])

    self.assertEqual(exit_code, ExitCode.TEST_FAILURE)
    self.assertEqual(self.events,
                     ['a.set_up', 't1.run', 't2.run', 'a.tear_down(NoneType)'])

  def test_get_exit_code(self):
    self.assertEqual(
        invocation.get_exit_code(catbox_error.ConfigurationError('x')),
        ExitCode.CONFIG_INVALID)
    self.assertEqual(invocation.get_exit_code(catbox_error.BuildError('x')),
                     ExitCode.SETUP_FAILURE)
    self.assertEqual(invocation.get_exit_code(catbox_error.Error('x')),
                     ExitCode.ERROR)


class ResultCollectorTest(unittest.TestCase):
  """Tests for ResultCollector."""

  def test_collects_failures_per_run(self):
    collector = invocation.ResultCollector()

    collector.test_run_started('moped', 1)
    collector.test_run_failed('timeout')
    collector.test_run_ended(10)

    self.assertTrue(collector.has_failures())
    self.assertEqual(collector.failures, [('moped', 'timeout')])


if __name__ == '__main__':
  unittest.main()
