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

"""Unittests for configuration."""

from pathlib import Path
import unittest

from pyfakefs import fake_filesystem_unittest
import yaml

from catbox import catbox_error
from catbox import configuration
from catbox.runners.moped_runner import MopedRunner
from catbox.target_preparers.low_performance_target_preparer import (
    LowPerformanceTargetPreparer)
from catbox.target_preparers.skip_test_preparer import SkipTestPreparer

_CONFIG = """
target_preparers:
  - class: skip-test-preparer
    options:
      comp-property: ro.build.version.sdk
      comp-property-int-value: 34
      int-comparison-operator: lt
  - low-performance
tests:
  - class: aaos-moped-test
    options:
      artifact: moped.tar.gz
      test-timeout-min: 30
"""


class LoadConfigTest(fake_filesystem_unittest.TestCase):
  """Tests for load_config."""

  def setUp(self):
    # Plugin modules cannot be imported once the fake filesystem is active.
    configuration.load_plugins()
    self.setUpPyfakefs()

  def test_load_config_creates_plugins_in_order(self):
    self.fs.create_file('/config.yaml', contents=_CONFIG)

    config = configuration.load_config(Path('/config.yaml'))

    skip, low_perf = config.target_preparers
    self.assertIsInstance(skip, SkipTestPreparer)
    self.assertEqual(skip.prop_value, 34)
    self.assertEqual(skip.comp_operator, 'lt')
    self.assertIsInstance(low_perf, LowPerformanceTargetPreparer)
    self.assertEqual(low_perf.nr_cpus, '4')
    moped, = config.tests
    self.assertIsInstance(moped, MopedRunner)
    self.assertEqual(moped.artifact, 'moped.tar.gz')
    self.assertEqual(moped.test_timeout_min, 30)

  def test_load_config_missing_file_raises(self):
    with self.assertRaises(catbox_error.ConfigurationError):
      configuration.load_config(Path('/missing.yaml'))

  def test_load_config_invalid_yaml_raises(self):
    self.fs.create_file('/config.yaml', contents='tests: [unclosed')

    with self.assertRaises(catbox_error.ConfigurationError):
      configuration.load_config(Path('/config.yaml'))

  def test_load_config_empty_file_has_no_plugins(self):
    self.fs.create_file('/config.yaml', contents='')

    config = configuration.load_config(Path('/config.yaml'))

    self.assertEqual(config.target_preparers, [])
    self.assertEqual(config.tests, [])


class ParseConfigTest(unittest.TestCase):
  """Tests for parse_config."""

  def test_parse_config_int_bool_option(self):
    config = configuration.parse_config(yaml.safe_load(
        'target_preparers:\n'
        '  - class: low-performance\n'
        '    options:\n'
        '      disable: 1\n'))

    self.assertTrue(config.target_preparers[0].is_disabled())

  def test_parse_config_unknown_alias_raises(self):
    with self.assertRaises(catbox_error.ConfigurationError) as cm:
      configuration.parse_config({'target_preparers': ['no-such-preparer']})

    self.assertIn('low-performance', str(cm.exception))

  def test_parse_config_runner_as_preparer_raises(self):
    with self.assertRaises(catbox_error.ConfigurationError):
      configuration.parse_config({'target_preparers': ['aaos-moped-test']})

  def test_parse_config_missing_mandatory_option_raises(self):
    with self.assertRaises(catbox_error.ConfigurationError) as cm:
      configuration.parse_config(
          {'target_preparers': ['chrome-md-passenger-load']})

    self.assertIn('"url"', str(cm.exception))

  def test_parse_config_unknown_key_raises(self):
    with self.assertRaises(catbox_error.ConfigurationError):
      configuration.parse_config({'preparers': []})

  def test_parse_config_malformed_entry_raises(self):
    with self.assertRaises(catbox_error.ConfigurationError):
      configuration.parse_config({'tests': [{'options': {}}]})

  def test_parse_config_non_mapping_options_raises(self):
    with self.assertRaises(catbox_error.ConfigurationError):
      configuration.parse_config(
          {'tests': [{'class': 'aaos-moped-test', 'options': ['a']}]})

  def test_load_plugins_registers_all_aliases(self):
    aliases = configuration.load_plugins()

    for alias in ('chrome-md-passenger-load', 'skip-test-preparer',
                  'low-performance', 'aaos-moped-test', 'test-app-install'):
      self.assertIn(alias, aliases)


if __name__ == '__main__':
  unittest.main()
