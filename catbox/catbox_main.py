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

"""Command line entry point of catbox.

  catbox --config invocation.yaml [--serial SERIAL ...] [-v]
  catbox --list-plugins
"""

from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path
import shutil
import sys
import tempfile
import time
from typing import List

from catbox import catbox_error
from catbox import catbox_utils
from catbox import configuration
from catbox import constants
from catbox import device as device_lib
from catbox import invocation
from catbox import options
from catbox.catbox_enum import ExitCode
from catbox.test_information import TestInformation

_RESULTS_DIR_PRINT_PREFIX = 'Catbox results and logs directory: '


def _parse_args(argv: List[str]) -> argparse.Namespace:
  parser = argparse.ArgumentParser(
      prog='catbox',
      description='Prepares Android Automotive devices and runs tests.')
  parser.add_argument(
      '--config', type=Path, help='YAML file describing the invocation.')
  parser.add_argument(
      '-s', '--serial', action='append', default=[],
      help='Serial of a device to use. Repeat for multiple devices.')
  parser.add_argument(
      '--dependencies-dir', type=Path,
      help='Folder receiving extracted test artifacts. A temporary folder '
      'is used and removed afterwards when unset.')
  parser.add_argument(
      '-v', '--verbose', action='store_true',
      help='Display DEBUG level logs on the console.')
  parser.add_argument(
      '--list-plugins', action='store_true',
      help='List the target preparers and tests that can be configured.')
  args = parser.parse_args(argv)
  if not args.list_plugins and args.config is None:
    parser.error('--config is required unless --list-plugins is given.')
  return args


def _configure_logging(verbose: bool, results_dir: str):
  """Configure the logger.

  Args:
      verbose: If true display DEBUG level logs on console.
      results_dir: A directory which stores the catbox execution information.
  """
  log_fmat = '%(asctime)s %(filename)s:%(lineno)s:%(levelname)s: %(message)s'
  date_fmt = '%Y-%m-%d %H:%M:%S'
  log_path = os.path.join(results_dir, constants.LOG_FILE_NAME)

  logger = logging.getLogger('')
  # Clear the handlers to prevent logging.basicConfig from being called twice.
  logger.handlers = []

  logging.basicConfig(
      filename=log_path, level=logging.DEBUG, format=log_fmat, datefmt=date_fmt
  )
  if verbose:
    console = logging.StreamHandler(sys.stderr)
    console.setLevel(logging.DEBUG)
    console.setFormatter(logging.Formatter(log_fmat, date_fmt))
    logger.addHandler(console)


def make_test_run_dir() -> str:
  """Make the test run dir in CATBOX_RESULT_ROOT.

  Returns:
      A string of the dir path.
  """
  result_root = constants.CATBOX_RESULT_ROOT
  os.makedirs(result_root, exist_ok=True)
  ctime = time.strftime(constants.TEST_RUN_DIR_PREFIX, time.localtime())
  test_result_dir = tempfile.mkdtemp(prefix='%s_' % ctime, dir=result_root)
  print(_RESULTS_DIR_PRINT_PREFIX + test_result_dir)
  return test_result_dir


def get_device_serials(requested: List[str]) -> List[str]:
  """Returns the serials to use, falling back to ANDROID_SERIAL or adb.

  Args:
      requested: Serials given on the command line.
  """
  if requested:
    return requested
  env_serial = os.environ.get(constants.ANDROID_SERIAL)
  if env_serial:
    return [env_serial]
  result = device_lib.run_command([constants.ADB, 'devices'],
                                  constants.DEFAULT_SHELL_TIMEOUT_SECS)
  serials = []
  for line in result.stdout.splitlines()[1:]:
    fields = line.split()
    if len(fields) >= 2 and fields[1] == 'device':
      serials.append(fields[0])
  logging.debug('Serials found by adb: %s', serials)
  return serials


def list_plugins() -> None:
  """Prints every plugin alias and its options."""
  for alias, plugin_class in sorted(configuration.load_plugins().items()):
    catbox_utils.colorful_print(alias, constants.GREEN)
    for option in options.iter_options(plugin_class):
      flags = []
      if option.mandatory:
        flags.append('mandatory')
      if option.repeatable:
        flags.append('repeatable')
      suffix = f' ({", ".join(flags)})' if flags else ''
      print(f'  --{option.name}{suffix}: {option.description}')


def run_invocation(args: argparse.Namespace) -> ExitCode:
  """Loads the config and runs the invocation on the requested devices."""
  try:
    config = configuration.load_config(args.config)
  except catbox_error.ConfigurationError as e:
    catbox_utils.print_and_log_error('Invalid config: %s', e)
    return ExitCode.CONFIG_INVALID

  serials = get_device_serials(args.serial)
  if not serials:
    catbox_utils.print_and_log_error(
        'No device found. Connect a device or pass --serial.')
    return ExitCode.DEVICE_NOT_FOUND
  devices = [device_lib.AdbDevice(serial) for serial in serials]

  dependencies_dir = args.dependencies_dir
  temp_dir = None
  if dependencies_dir is None:
    temp_dir = tempfile.mkdtemp(prefix='catbox_dependencies_')
    dependencies_dir = Path(temp_dir)
  else:
    dependencies_dir.mkdir(parents=True, exist_ok=True)
  try:
    test_info = TestInformation(devices, dependencies_dir)
    return invocation.Invocation(config, test_info).run()
  finally:
    if temp_dir:
      shutil.rmtree(temp_dir, ignore_errors=True)


def main(argv: List[str] = None) -> int:
  """Entry point of the catbox command."""
  args = _parse_args(sys.argv[1:] if argv is None else argv)
  if args.list_plugins:
    list_plugins()
    return ExitCode.SUCCESS

  results_dir = make_test_run_dir()
  _configure_logging(args.verbose, results_dir)
  logging.debug('Start of catbox run. args: %s', args)
  exit_code = run_invocation(args)
  if exit_code == ExitCode.SUCCESS:
    catbox_utils.colorful_print('Invocation passed.', constants.GREEN)
  else:
    catbox_utils.colorful_print(
        f'Invocation failed with {exit_code.name}.', constants.RED)
  logging.debug('End of catbox run. exit code: %s', exit_code)
  return exit_code


if __name__ == '__main__':
  sys.exit(main())
