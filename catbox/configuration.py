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

"""Loads invocation configs describing the plugins to run.

An invocation config is a YAML file:

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

Entries are either an alias or a mapping holding the alias under 'class' and
the option values under 'options'.
"""

from __future__ import annotations

import dataclasses
import importlib
import logging
from pathlib import Path
from typing import Any, Dict, List, Type

import yaml

from catbox import catbox_error
from catbox import constants
from catbox import options
from catbox.runners.remote_test import RemoteTest
from catbox.target_preparers.base_target_preparer import BaseTargetPreparer

# Modules registering plugins with @option_class.
_PLUGIN_MODULES = (
    'catbox.target_preparers.chrome_md_passenger_load_preparer',
    'catbox.target_preparers.low_performance_target_preparer',
    'catbox.target_preparers.skip_test_preparer',
    'catbox.target_preparers.test_app_install_setup',
    'catbox.runners.moped_runner',
)


@dataclasses.dataclass
class Configuration:
  """The plugins of one invocation, in execution order."""
  target_preparers: List[BaseTargetPreparer] = dataclasses.field(
      default_factory=list)
  tests: List[RemoteTest] = dataclasses.field(default_factory=list)


def load_plugins() -> Dict[str, Type]:
  """Imports the built-in plugins and returns them by alias."""
  for module in _PLUGIN_MODULES:
    importlib.import_module(module)
  return options.get_registered_aliases()


def create_plugin(entry: Any, base_class: Type) -> Any:
  """Instantiates the plugin described by a config entry.

  Args:
      entry: An alias string, or a dict with 'class' and 'options' keys.
      base_class: The class the plugin must derive from.

  Returns:
      The configured plugin instance.

  Raises:
      ConfigurationError: If the entry is malformed, the alias is unknown,
        an option is invalid or a mandatory option is missing.
  """
  if isinstance(entry, str):
    alias, values = entry, {}
  elif isinstance(entry, dict) and constants.CONFIG_KEY_CLASS in entry:
    alias = entry[constants.CONFIG_KEY_CLASS]
    values = entry.get(constants.CONFIG_KEY_OPTIONS) or {}
    if not isinstance(values, dict):
      raise catbox_error.ConfigurationError(
          f'Options of "{alias}" must be a mapping, got {values!r}.')
  else:
    raise catbox_error.ConfigurationError(
        f'Invalid plugin entry: {entry!r}')
  plugin_class = options.get_option_class(alias)
  if not issubclass(plugin_class, base_class):
    raise catbox_error.ConfigurationError(
        f'"{alias}" is not a {base_class.__name__}.')
  plugin = plugin_class()
  options.set_options(plugin, values)
  options.validate_mandatory(plugin)
  logging.debug('Configured %s with options %s', alias, values)
  return plugin


def parse_config(content: Dict[str, Any]) -> Configuration:
  """Builds a Configuration from the parsed YAML content."""
  if not isinstance(content, dict):
    raise catbox_error.ConfigurationError(
        'An invocation config must be a mapping.')
  unknown_keys = set(content) - {constants.CONFIG_KEY_TARGET_PREPARERS,
                                 constants.CONFIG_KEY_TESTS}
  if unknown_keys:
    raise catbox_error.ConfigurationError(
        f'Unknown config keys: {", ".join(sorted(unknown_keys))}')
  load_plugins()
  return Configuration(
      target_preparers=[
          create_plugin(entry, BaseTargetPreparer) for entry in
          content.get(constants.CONFIG_KEY_TARGET_PREPARERS) or []],
      tests=[
          create_plugin(entry, RemoteTest) for entry in
          content.get(constants.CONFIG_KEY_TESTS) or []],
  )


def load_config(config_path: Path) -> Configuration:
  """Reads an invocation config file.

  Raises:
      ConfigurationError: If the file cannot be read or is invalid.
  """
  logging.debug('Loading invocation config %s', config_path)
  try:
    with open(config_path, 'r', encoding='utf-8') as config_file:
      content = yaml.safe_load(config_file)
  except OSError as e:
    raise catbox_error.ConfigurationError(
        f'Cannot read config {config_path}: {e}') from e
  except yaml.YAMLError as e:
    raise catbox_error.ConfigurationError(
        f'Config {config_path} is not valid YAML: {e}') from e
  return parse_config(content or {})
