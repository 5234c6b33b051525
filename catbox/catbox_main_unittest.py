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

"""Unittests for catbox_main."""

from io import StringIO
import os
from pathlib import Path
import tempfile
import unittest
from unittest import mock

from catbox import catbox_error
from catbox import catbox_main
from catbox import constants
from catbox import device
from catbox.catbox_enum import CommandStatus, ExitCode
from catbox.configuration import Configuration

_ADB_DEVICES = ('List of devices attached\n'
                'SERIAL1\tdevice\n'
                'SERIAL2\toffline\n'
                'SERIAL3\tdevice\n')


class ParseArgsTest(unittest.TestCase):
  """Tests for _parse_args."""

  def test_parse_args_repeated_serials(self):
    args = catbox_main._parse_args(
        ['--config', 'a.yaml', '-s', 'S1', '--serial', 'S2', '-v'])

    self.assertEqual(args.config, Path('a.yaml'))
    self.assertEqual(args.serial, ['S1', 'S2'])
    self.assertTrue(args.verbose)

  @mock.patch('sys.stderr', new_callable=StringIO)
  def test_parse_args_requires_config(self, _):
    with self.assertRaises(SystemExit):
      catbox_main._parse_args([])

  def test_parse_args_list_plugins_without_config(self):
    args = catbox_main._parse_args(['--list-plugins'])

    self.assertTrue(args.list_plugins)


class MakeTestRunDirTest(unittest.TestCase):
  """Tests for make_test_run_dir."""

  @mock.patch('sys.stdout', new_callable=StringIO)
  def test_run_dir_is_created_under_result_root(self, _):
    with tempfile.TemporaryDirectory() as result_root:
      with mock.patch.object(constants, 'CATBOX_RESULT_ROOT', result_root), \
          mock.patch.dict(os.environ,
                          {constants.RESULT_ROOT_ENV: '/not/used'}):
        run_dir = catbox_main.make_test_run_dir()

      self.assertEqual(os.path.dirname(run_dir), result_root)
      self.assertTrue(os.path.isdir(run_dir))


class GetDeviceSerialsTest(unittest.TestCase):
  """Tests for get_device_serials."""

  @mock.patch('catbox.device.run_command')
  def test_requested_serials_win(self, mock_run):
    self.assertEqual(catbox_main.get_device_serials(['S1']), ['S1'])
    mock_run.assert_not_called()

  @mock.patch.dict(os.environ, {constants.ANDROID_SERIAL: 'ENV_SERIAL'})
  def test_android_serial_env(self):
    self.assertEqual(catbox_main.get_device_serials([]), ['ENV_SERIAL'])

  @mock.patch.dict(os.environ, {constants.ANDROID_SERIAL: ''})
  @mock.patch('catbox.device.run_command')
  def test_online_devices_from_adb(self, mock_run):
    mock_run.return_value = device.CommandResult(
        CommandStatus.SUCCESS, 0, _ADB_DEVICES)

    self.assertEqual(catbox_main.get_device_serials([]),
                     ['SERIAL1', 'SERIAL3'])


class RunInvocationTest(unittest.TestCase):
  """Tests for run_invocation."""

  def setUp(self):
    self.args = catbox_main._parse_args(['--config', 'a.yaml', '-s', 'S1'])

  @mock.patch('catbox.configuration.load_config',
              side_effect=catbox_error.ConfigurationError('bad'))
  def test_invalid_config_returns_config_invalid(self, _):
    self.assertEqual(catbox_main.run_invocation(self.args),
                     ExitCode.CONFIG_INVALID)

  @mock.patch('catbox.catbox_main.get_device_serials', return_value=[])
  @mock.patch('catbox.configuration.load_config',
              return_value=Configuration())
  def test_no_device_returns_device_not_found(self, *_):
    self.assertEqual(catbox_main.run_invocation(self.args),
                     ExitCode.DEVICE_NOT_FOUND)

  @mock.patch('shutil.rmtree')
  @mock.patch('tempfile.mkdtemp', return_value='/tmp/catbox_dependencies_x')
  @mock.patch('catbox.invocation.Invocation')
  @mock.patch('catbox.configuration.load_config',
              return_value=Configuration())
  def test_temporary_dependencies_dir_is_removed(
      self, _, mock_invocation, __, mock_rmtree):
    mock_invocation.return_value.run.return_value = ExitCode.SUCCESS

    exit_code = catbox_main.run_invocation(self.args)

    self.assertEqual(exit_code, ExitCode.SUCCESS)
    test_info = mock_invocation.call_args.args[1]
    self.assertEqual(test_info.dependencies_folder,
                     Path('/tmp/catbox_dependencies_x'))
    self.assertEqual(test_info.get_device().get_serial_number(), 'S1')
    mock_rmtree.assert_called_once_with('/tmp/catbox_dependencies_x',
                                        ignore_errors=True)


if __name__ == '__main__':
  unittest.main()
