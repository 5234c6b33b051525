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

"""Unittests for moped_runner."""

from pathlib import Path
import subprocess
from unittest import mock

from pyfakefs import fake_filesystem_unittest

from catbox import catbox_error
from catbox import device
from catbox.options import set_options
from catbox.runners import moped_runner
from catbox.runners.remote_test import TestInvocationListener
from catbox.test_information import TestInformation

_ARTIFACT = 'moped_tests.tar.gz'


def _fake_popen(returncode=0, stdout='line 1\nline 2\n', side_effect=None):
  proc = mock.MagicMock()
  proc.__enter__.return_value = proc
  proc.returncode = returncode
  if side_effect:
    proc.communicate.side_effect = side_effect
  else:
    proc.communicate.return_value = (stdout, None)
  return proc


class MopedRunnerTest(fake_filesystem_unittest.TestCase):
  """Tests for MopedRunner."""

  def setUp(self):
    self.setUpPyfakefs()
    self.fs.create_file(f'/testcases/{_ARTIFACT}')
    self.fs.create_dir('/deps')
    devices = []
    for serial in ('SERIAL1', 'SERIAL2'):
      dut = mock.create_autospec(device.AdbDevice, instance=True)
      dut.get_serial_number.return_value = serial
      devices.append(dut)
    self.test_info = TestInformation(devices, Path('/deps'))
    self.listener = mock.create_autospec(TestInvocationListener,
                                         instance=True)
    self.runner = moped_runner.MopedRunner()
    set_options(self.runner, {'artifact': _ARTIFACT,
                              'testcases-dir': '/testcases'})

  @mock.patch('subprocess.Popen')
  def test_run_extracts_and_runs_script(self, mock_popen):
    mock_popen.return_value = _fake_popen()

    self.runner.run(self.test_info, self.listener)

    self.assertEqual(mock_popen.call_args_list[0].args[0], [
        'tar', 'xf', f'/testcases/{_ARTIFACT}', '-C', '/deps'])
    self.assertEqual(mock_popen.call_args_list[1].args[0], [
        'bash', '/deps/moped_tests/run.sh', 'SERIAL1', 'SERIAL2'])
    mock_popen.return_value.communicate.assert_called_with(timeout=60 * 60)
    self.listener.test_run_started.assert_called_once_with(
        'aaos-moped-test', 1)
    self.listener.test_run_failed.assert_not_called()
    self.listener.test_run_ended.assert_called_once()

  @mock.patch('subprocess.Popen')
  def test_run_reuses_extracted_artifact(self, mock_popen):
    self.fs.create_dir('/deps/moped_tests')
    mock_popen.return_value = _fake_popen()

    self.runner.run(self.test_info, self.listener)

    mock_popen.assert_called_once()
    self.assertEqual(mock_popen.call_args.args[0][0], 'bash')

  @mock.patch('subprocess.Popen')
  def test_run_test_artifact_option(self, mock_popen):
    runner = moped_runner.MopedRunner()
    set_options(runner, {'test-artifact': _ARTIFACT,
                         'testcases-dir': '/testcases'})
    mock_popen.return_value = _fake_popen()

    runner.run(self.test_info, self.listener)

    self.assertEqual(mock_popen.call_count, 2)
    self.listener.test_run_failed.assert_not_called()

  @mock.patch('subprocess.Popen')
  def test_run_missing_artifact_reports_failure(self, mock_popen):
    set_options(self.runner, {'artifact': 'missing.tar.gz'})

    self.runner.run(self.test_info, self.listener)

    mock_popen.assert_not_called()
    self.listener.test_run_failed.assert_called_once()
    self.assertIn('missing.tar.gz',
                  self.listener.test_run_failed.call_args.args[0])
    self.listener.test_run_ended.assert_called_once()

  @mock.patch('subprocess.Popen')
  def test_run_script_failure_reports_failure(self, mock_popen):
    mock_popen.side_effect = [_fake_popen(), _fake_popen(returncode=1)]

    self.runner.run(self.test_info, self.listener)

    self.listener.test_run_failed.assert_called_once()
    self.assertIn('failed', self.listener.test_run_failed.call_args.args[0])

  @mock.patch('subprocess.Popen')
  def test_run_timeout_kills_process_and_reports_failure(self, mock_popen):
    hanging = _fake_popen(side_effect=[
        subprocess.TimeoutExpired('bash', 3600), ('', None)])
    mock_popen.side_effect = [_fake_popen(), hanging]

    self.runner.run(self.test_info, self.listener)

    hanging.kill.assert_called_once_with()
    self.assertIn('timeout', self.listener.test_run_failed.call_args.args[0])

  @mock.patch('subprocess.Popen', side_effect=FileNotFoundError('no bash'))
  def test_execute_host_command_cannot_start_raises(self, _):
    with self.assertRaises(catbox_error.TargetSetupError):
      self.runner._execute_host_command(['bash', 'run.sh'], 1)

  @mock.patch('subprocess.Popen')
  def test_execute_host_command_returns_lines(self, mock_popen):
    mock_popen.return_value = _fake_popen(stdout='a\nb\n')

    lines = self.runner._execute_host_command(['echo'], 1)

    self.assertEqual(lines, ['a', 'b'])
    mock_popen.assert_called_once_with(
        ['echo'], stdout=subprocess.PIPE, stderr=subprocess.STDOUT,
        encoding='utf-8', errors='replace')


if __name__ == '__main__':
  fake_filesystem_unittest.main()
