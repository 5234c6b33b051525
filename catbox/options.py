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

"""Declarative options for catbox plugins.

Plugins declare their configurable fields as class level Option objects and
register themselves under an alias with @option_class. An invocation config
refers to the alias and sets options by their dashed names:

  @option_class('skip-test-preparer')
  class SkipTestPreparer(BaseTargetPreparer):
    comp_property = Option('comp-property', description='...')
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, Type

from catbox import catbox_error
from catbox import catbox_utils

_OPTION_CLASSES: Dict[str, Type] = {}


class Option:
  """A configurable field of a plugin."""

  def __init__(
      self,
      name: str,
      default: Any = None,
      description: str = '',
      mandatory: bool = False,
      type: Callable[[Any], Any] = str,  # pylint: disable=redefined-builtin
      repeatable: bool = False,
  ):
    self.name = name
    self.default = default
    self.description = description
    self.mandatory = mandatory
    self.type = type
    self.repeatable = repeatable
    self.attr_name = None

  def __set_name__(self, owner, attr_name):
    self.attr_name = attr_name

  def __get__(self, instance, owner=None):
    if instance is None:
      return self
    values = instance.__dict__
    if self.attr_name not in values:
      # Every instance owns its default so list defaults are never shared.
      if self.repeatable and self.default is None:
        values[self.attr_name] = []
      else:
        values[self.attr_name] = copy.deepcopy(self.default)
    return values[self.attr_name]

  def __set__(self, instance, value):
    instance.__dict__[self.attr_name] = value

  def convert(self, value: Any) -> Any:
    """Converts a raw config value to the declared option type.

    Raises:
        ConfigurationError: If the value cannot be converted.
    """
    try:
      if self.type is bool:
        if isinstance(value, bool):
          return value
        # YAML hands over 0 and 1 as ints.
        if isinstance(value, (str, int)):
          return catbox_utils.strtobool(str(value))
        raise ValueError(f'{value!r} is not a boolean')
      return self.type(value)
    except (TypeError, ValueError) as e:
      raise catbox_error.ConfigurationError(
          f'Invalid value {value!r} for option "{self.name}": {e}') from e


def option_class(alias: str):
  """Class decorator registering a plugin under the given alias."""

  def register(cls):
    if alias in _OPTION_CLASSES and _OPTION_CLASSES[alias] is not cls:
      raise catbox_error.ConfigurationError(
          f'Alias "{alias}" is already registered by '
          f'{_OPTION_CLASSES[alias].__name__}.')
    cls.ALIAS = alias
    _OPTION_CLASSES[alias] = cls
    return cls

  return register


def get_option_class(alias: str) -> Type:
  """Returns the plugin class registered under alias.

  Raises:
      ConfigurationError: If nothing is registered under the alias.
  """
  try:
    return _OPTION_CLASSES[alias]
  except KeyError:
    raise catbox_error.ConfigurationError(
        f'Unknown plugin "{alias}". Known plugins: '
        f'{", ".join(sorted(_OPTION_CLASSES))}') from None


def get_registered_aliases() -> Dict[str, Type]:
  return dict(_OPTION_CLASSES)


def iter_options(cls: Type) -> Iterator[Option]:
  """Yields the options declared by cls and its base classes."""
  seen = set()
  for klass in cls.__mro__:
    for value in vars(klass).values():
      if isinstance(value, Option) and value.name not in seen:
        seen.add(value.name)
        yield value


def _find_option(obj: Any, name: str) -> Option:
  for option in iter_options(type(obj)):
    if option.name == name:
      return option
  raise catbox_error.ConfigurationError(
      f'{type(obj).__name__} has no option "{name}".')


def set_option_value(obj: Any, name: str, value: Any) -> None:
  """Sets the option called name on obj.

  Repeatable options append; a list value appends every element.

  Raises:
      ConfigurationError: If the option does not exist or the value is
        invalid.
  """
  option = _find_option(obj, name)
  if option.repeatable:
    values = value if isinstance(value, (list, tuple)) else [value]
    converted = [option.convert(item) for item in values]
    getattr(obj, option.attr_name).extend(converted)
    return
  setattr(obj, option.attr_name, option.convert(value))


def set_options(obj: Any, values: Dict[str, Any]) -> None:
  for name, value in (values or {}).items():
    set_option_value(obj, name, value)


def validate_mandatory(obj: Any) -> None:
  """Checks that every mandatory option of obj has a value.

  Raises:
      ConfigurationError: Naming the first mandatory option without value.
  """
  for option in iter_options(type(obj)):
    if not option.mandatory:
      continue
    value = getattr(obj, option.attr_name)
    if value is None or (option.repeatable and not value):
      raise catbox_error.ConfigurationError(
          f'Option "{option.name}" is mandatory for {type(obj).__name__}.')


def to_path(value: Any) -> Path:
  """Option type for file system paths."""
  return Path(value).expanduser()
