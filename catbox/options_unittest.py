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

"""Unittests for options."""

from pathlib import Path
import unittest

from catbox import catbox_error
from catbox import options
from catbox.options import Option, option_class


@option_class('options-unittest-plugin')
class _FakePlugin:
  name = Option('name', mandatory=True)
  count = Option('count', default=3, type=int)
  enabled = Option('enabled', default=False, type=bool)
  items = Option('item', type=int, repeatable=True)
  folder = Option('folder', type=options.to_path)


class _FakeChildPlugin(_FakePlugin):
  extra = Option('extra')


class OptionTest(unittest.TestCase):
  """Tests for the Option descriptor and its helpers."""

  def test_defaults_are_per_instance(self):
    first, second = _FakePlugin(), _FakePlugin()

    first.items.append(1)

    self.assertEqual(second.items, [])
    self.assertEqual(first.count, 3)
    self.assertIsNone(first.name)

  def test_set_options_converts_types(self):
    plugin = _FakePlugin()

    options.set_options(plugin, {'count': '7', 'enabled': 'true',
                                 'folder': '/tmp/deps'})

    self.assertEqual(plugin.count, 7)
    self.assertTrue(plugin.enabled)
    self.assertEqual(plugin.folder, Path('/tmp/deps'))

  def test_set_option_value_repeatable_appends(self):
    plugin = _FakePlugin()

    options.set_option_value(plugin, 'item', 1)
    options.set_option_value(plugin, 'item', ['2', 3])

    self.assertEqual(plugin.items, [1, 2, 3])

  def test_set_option_value_bool_accepts_yaml_ints(self):
    plugin = _FakePlugin()

    options.set_option_value(plugin, 'enabled', 1)
    self.assertIs(plugin.enabled, True)

    options.set_option_value(plugin, 'enabled', 0)
    self.assertIs(plugin.enabled, False)

  def test_set_option_value_bool_rejects_other_ints(self):
    with self.assertRaises(catbox_error.ConfigurationError):
      options.set_option_value(_FakePlugin(), 'enabled', 2)

  def test_set_option_value_repeatable_invalid_item_keeps_values(self):
    plugin = _FakePlugin()
    options.set_option_value(plugin, 'item', 1)

    with self.assertRaises(catbox_error.ConfigurationError):
      options.set_option_value(plugin, 'item', ['2', 'three'])

    self.assertEqual(plugin.items, [1])

  def test_set_option_value_unknown_option_raises(self):
    with self.assertRaises(catbox_error.ConfigurationError):
      options.set_option_value(_FakePlugin(), 'no-such-option', 1)

  def test_set_option_value_invalid_int_raises(self):
    with self.assertRaises(catbox_error.ConfigurationError):
      options.set_option_value(_FakePlugin(), 'count', 'many')

  def test_set_option_value_invalid_bool_raises(self):
    with self.assertRaises(catbox_error.ConfigurationError):
      options.set_option_value(_FakePlugin(), 'enabled', 'maybe')

  def test_validate_mandatory_missing_value_raises(self):
    with self.assertRaises(catbox_error.ConfigurationError) as cm:
      options.validate_mandatory(_FakePlugin())

    self.assertIn('"name"', str(cm.exception))

  def test_validate_mandatory_with_value_passes(self):
    plugin = _FakePlugin()
    plugin.name = 'set'

    options.validate_mandatory(plugin)

  def test_iter_options_includes_base_class_options(self):
    names = {option.name for option in options.iter_options(_FakeChildPlugin)}

    self.assertEqual(
        names, {'name', 'count', 'enabled', 'item', 'folder', 'extra'})


class OptionClassTest(unittest.TestCase):
  """Tests for the plugin registry."""

  def test_option_class_sets_alias(self):
    self.assertEqual(_FakePlugin.ALIAS, 'options-unittest-plugin')
    self.assertIs(options.get_option_class('options-unittest-plugin'),
                  _FakePlugin)

  def test_get_option_class_unknown_alias_raises(self):
    with self.assertRaises(catbox_error.ConfigurationError):
      options.get_option_class('no-such-plugin')

  def test_option_class_duplicate_alias_raises(self):
    with self.assertRaises(catbox_error.ConfigurationError):
      option_class('options-unittest-plugin')(_FakeChildPlugin)


if __name__ == '__main__':
  unittest.main()
