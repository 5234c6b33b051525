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

"""Unittests for catbox_utils."""

import importlib
from io import StringIO
import json
import os
import tempfile
import unittest
from unittest import mock

from catbox import catbox_utils
from catbox import constants


class CatboxUtilsTest(unittest.TestCase):
  """Tests for catbox_utils."""

  def test_strtobool(self):
    self.assertTrue(catbox_utils.strtobool('Yes'))
    self.assertTrue(catbox_utils.strtobool('1'))
    self.assertFalse(catbox_utils.strtobool('off'))
    with self.assertRaises(ValueError):
      catbox_utils.strtobool('maybe')

  @mock.patch('catbox.catbox_utils._has_colors', return_value=True)
  def test_colorize_with_colors(self, _):
    self.assertEqual(catbox_utils.colorize('text', constants.RED),
                     '\033[1;31mtext\033[0m')
    self.assertEqual(
        catbox_utils.colorize('text', constants.GREEN, constants.BLUE),
        '\033[1;32;44mtext\033[0m')

  @mock.patch('catbox.catbox_utils._has_colors', return_value=False)
  def test_colorize_without_colors_returns_text(self, _):
    self.assertEqual(catbox_utils.colorize('text', constants.RED), 'text')

  @mock.patch('logging.error')
  @mock.patch('sys.stderr', new_callable=StringIO)
  @mock.patch('catbox.catbox_utils._has_colors', return_value=False)
  def test_print_and_log_error_formats_args(
      self, _, mock_stderr, mock_error):
    catbox_utils.print_and_log_error('Failed %s: %d', 'install', 3)

    self.assertEqual(mock_stderr.getvalue(), 'Failed install: 3\n')
    mock_error.assert_called_once_with('Failed install: 3')

  @mock.patch('logging.info')
  @mock.patch('sys.stdout', new_callable=StringIO)
  def test_print_and_log_info_keeps_percent_without_args(
      self, mock_stdout, mock_info):
    catbox_utils.print_and_log_info('100% done')

    mock_info.assert_called_once_with('100% done')
    self.assertEqual(mock_stdout.getvalue(), '100% done\n')

  @mock.patch.dict(os.environ, {constants.TESTCASES_DIR_ENV: '/my/testcases'})
  def test_get_testcases_dir_from_env(self):
    self.assertEqual(str(catbox_utils.get_testcases_dir()), '/my/testcases')

  @mock.patch.dict(os.environ, {constants.TESTCASES_DIR_ENV: ''})
  def test_get_testcases_dir_default(self):
    self.assertEqual(str(catbox_utils.get_testcases_dir()),
                     str(constants.DEFAULT_TESTCASES_DIR))


class VendorConfigTest(unittest.TestCase):
  """Tests for the vendor overrides applied by constants."""

  def tearDown(self):
    with mock.patch.dict(os.environ, {constants.VENDOR_CONFIG_PATH_ENV: ''}):
      importlib.reload(constants)

  def test_vendor_config_overrides_defaults(self):
    with tempfile.TemporaryDirectory() as tmp_dir:
      config_path = os.path.join(tmp_dir, 'vendor.json')
      with open(config_path, 'w', encoding='utf-8') as config_file:
        json.dump({'DEFAULT_TEST_TIMEOUT_MIN': 120}, config_file)
      with mock.patch.dict(os.environ,
                           {constants.VENDOR_CONFIG_PATH_ENV: config_path}):
        importlib.reload(constants)

    self.assertEqual(constants.DEFAULT_TEST_TIMEOUT_MIN, 120)
    self.assertEqual(constants.ADB, 'adb')

  def test_no_vendor_config_keeps_defaults(self):
    with mock.patch.dict(os.environ, {constants.VENDOR_CONFIG_PATH_ENV: ''}):
      importlib.reload(constants)

    self.assertEqual(constants.DEFAULT_TEST_TIMEOUT_MIN, 60)


if __name__ == '__main__':
  unittest.main()
