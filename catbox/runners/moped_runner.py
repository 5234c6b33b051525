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

"""Runner for packaged Moped test suites.

A Moped test artifact is a tarball shipped in the testcases dir. It holds a
`run.sh` entry point which receives the serials of the invocation devices.
"""

import logging
from pathlib import Path
import re
import subprocess
import time
from typing import List, Optional

from catbox import catbox_error
from catbox import catbox_utils
from catbox import constants
from catbox.options import Option, option_class, to_path
from catbox.runners.remote_test import RemoteTest, TestInvocationListener
from catbox.test_information import TestInformation

_TARBALL_SUFFIX_RE = re.compile(r'\.tar.*gz')
_SECONDS_PER_MINUTE = 60


@option_class('aaos-moped-test')
class MopedRunner(RemoteTest):
  """Extracts a Moped test artifact and runs its entry script."""

  test_artifact = Option(
      'test-artifact', type=to_path, description='Test artifact file.')
  artifact = Option('artifact', description='Test artifact name.')
  unzip_build_timeout_min = Option(
      'unzip-build-timeout-min',
      default=constants.DEFAULT_UNZIP_BUILD_TIMEOUT_MIN, type=int,
      description='Unzip build timeout in minutes.')
  test_timeout_min = Option(
      'test-timeout-min', default=constants.DEFAULT_TEST_TIMEOUT_MIN,
      type=int, description='Test timeout in minutes.')
  testcases_dir = Option(
      'testcases-dir', type=to_path,
      description='Folder holding the test artifact. Defaults to the '
      'testcases dir of the catbox installation.')

  def __init__(self):
    self._artifact_location: Optional[Path] = None

  def run(self, test_info: TestInformation,
          listener: TestInvocationListener) -> None:
    listener.test_run_started(self.ALIAS, 1)
    start = time.monotonic()
    try:
      self._untar_test_artifact(test_info)
      run_script = self._artifact_location / constants.MOPED_RUN_SCRIPT
      self._execute_host_command(
          ['bash', str(run_script), *self._get_serials(test_info)],
          self.test_timeout_min)
    except catbox_error.TargetSetupError as e:
      catbox_utils.print_and_log_error(
          'There are problems running tests! %s', e)
      listener.test_run_failed(str(e))
    except TimeoutError as e:
      catbox_utils.print_and_log_error('Test execution timeout! %s', e)
      listener.test_run_failed(f'Test execution timeout! {e}')
    except FileNotFoundError as e:
      catbox_utils.print_and_log_error('Test artifact not found! %s', e)
      listener.test_run_failed(f'Test artifact not found! {e}')
    finally:
      listener.test_run_ended(int((time.monotonic() - start) * 1000))

  def _get_source_file(self) -> Path:
    """Returns the artifact tarball to extract.

    Raises:
        FileNotFoundError: If no artifact is configured or it does not exist.
    """
    artifact = self.artifact
    if artifact is None and self.test_artifact is not None:
      artifact = str(self.test_artifact)
    if not artifact:
      raise FileNotFoundError('Neither artifact nor test-artifact is set.')
    testcases_dir = self.testcases_dir or catbox_utils.get_testcases_dir()
    source = testcases_dir / artifact
    if not source.is_file():
      raise FileNotFoundError(f'{source} does not exist.')
    return source

  def _untar_test_artifact(self, test_info: TestInformation) -> None:
    source = self._get_source_file()
    dest = test_info.dependencies_folder
    self._artifact_location = dest / _TARBALL_SUFFIX_RE.sub('', source.name)
    if self._artifact_location.exists():
      logging.debug('Reusing extracted artifact at %s',
                    self._artifact_location)
      return
    self._execute_host_command(
        ['tar', 'xf', str(source), '-C', str(dest)],
        self.unzip_build_timeout_min)

  def _get_serials(self, test_info: TestInformation) -> List[str]:
    return [device.get_serial_number() for device in test_info.get_devices()]

  def _execute_host_command(self, command: List[str],
                            timeout_min: int) -> List[str]:
    """Runs a host command and returns its stdout lines.

    Args:
        command: The command and its arguments.
        timeout_min: Minutes to wait before the command is killed.

    Returns:
        The lines printed to stdout by the command.

    Raises:
        TimeoutError: If the command does not finish in time.
        TargetSetupError: If the command cannot be started or exits with a
          non-zero code.
    """
    catbox_utils.print_and_log_info('Output of running %s is:', command)
    try:
      proc = subprocess.Popen(command, stdout=subprocess.PIPE,
                              stderr=subprocess.STDOUT, encoding='utf-8',
                              errors='replace')
    except OSError as e:
      raise catbox_error.TargetSetupError(
          f'There are problems running {command}: {e}') from e
    with proc:
      try:
        stdout, _ = proc.communicate(
            timeout=timeout_min * _SECONDS_PER_MINUTE)
      except subprocess.TimeoutExpired as e:
        proc.kill()
        proc.communicate()
        raise TimeoutError(
            f'{command} did not finish in {timeout_min} minutes.') from e
    lines = stdout.splitlines() if stdout else []
    for line in lines:
      catbox_utils.print_and_log_info(line)
    if proc.returncode != 0:
      raise catbox_error.TargetSetupError(
          f'Execution of command {command} failed!')
    return lines
