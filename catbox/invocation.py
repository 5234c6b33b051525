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

"""Runs the target preparers and tests of one invocation."""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from catbox import catbox_error
from catbox import catbox_utils
from catbox.catbox_enum import ExitCode
from catbox.configuration import Configuration
from catbox.runners.remote_test import TestInvocationListener
from catbox.target_preparers.base_target_preparer import BaseTargetPreparer
from catbox.test_information import TestInformation


def get_exit_code(error: BaseException) -> ExitCode:
  """Maps an error ending the invocation to the process exit code."""
  if isinstance(error, catbox_error.ConfigurationError):
    return ExitCode.CONFIG_INVALID
  if isinstance(error, catbox_error.DeviceNotAvailableError):
    return ExitCode.DEVICE_NOT_AVAILABLE
  if isinstance(error, (catbox_error.TargetSetupError,
                        catbox_error.BuildError,
                        catbox_error.DeviceRuntimeError)):
    return ExitCode.SETUP_FAILURE
  return ExitCode.ERROR


class ResultCollector(TestInvocationListener):
  """Listener keeping the failures reported by the test runs."""

  def __init__(self):
    self._run_name = None
    self.failures: List[Tuple[str, str]] = []

  def test_run_started(self, run_name: str, test_count: int) -> None:
    self._run_name = run_name
    logging.info('Test run %s started with %d test(s).', run_name, test_count)

  def test_run_failed(self, error_message: str) -> None:
    self.failures.append((self._run_name, error_message))
    logging.error('Test run %s failed: %s', self._run_name, error_message)

  def test_run_ended(self, elapsed_time_ms: int) -> None:
    logging.info('Test run %s ended after %d ms.', self._run_name,
                 elapsed_time_ms)

  def has_failures(self) -> bool:
    return bool(self.failures)


class Invocation:
  """Sets up the device, runs the tests and tears the device down.

  Preparers are set up in config order. The first failing set_up stops the
  remaining preparers and the tests. Every preparer whose set_up was called,
  including the failing one, is torn down in reverse order.
  """

  def __init__(self, config: Configuration, test_info: TestInformation,
               listener: Optional[ResultCollector] = None):
    self._config = config
    self._test_info = test_info
    self.listener = listener or ResultCollector()

  def run(self) -> ExitCode:
    """Runs the invocation and returns its exit code."""
    started: List[BaseTargetPreparer] = []
    error = None
    try:
      for preparer in self._config.target_preparers:
        if preparer.is_disabled():
          logging.debug('Preparer %s is disabled.', preparer.ALIAS)
          continue
        started.append(preparer)
        logging.info('Setting up %s', preparer.ALIAS)
        preparer.set_up(self._test_info)
      self._run_tests()
    except catbox_error.Error as e:
      error = e
      catbox_utils.print_and_log_error('Invocation failed: %s', e)
    finally:
      tear_down_error = self._tear_down(started, error)

    if error is not None:
      return get_exit_code(error)
    if self.listener.has_failures():
      return ExitCode.TEST_FAILURE
    if tear_down_error is not None:
      return get_exit_code(tear_down_error)
    return ExitCode.SUCCESS

  def _run_tests(self) -> None:
    for test in self._config.tests:
      logging.info('Running %s', test.ALIAS)
      test.run(self._test_info, self.listener)

  def _tear_down(self, started: List[BaseTargetPreparer],
                 error: Optional[BaseException]
                 ) -> Optional[catbox_error.Error]:
    """Tears down started preparers and returns the first tear down error."""
    first_error = None
    for preparer in reversed(started):
      if preparer.is_tear_down_disabled():
        logging.debug('Tear down of %s is disabled.', preparer.ALIAS)
        continue
      logging.info('Tearing down %s', preparer.ALIAS)
      try:
        preparer.tear_down(self._test_info, error)
      except catbox_error.Error as e:
        catbox_utils.print_and_log_warning(
            'Tear down of %s failed: %s', preparer.ALIAS, e)
        first_error = first_error or e
    return first_error
