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

"""Imports the default constants and applies vendor overrides."""
# pylint: disable=wildcard-import
# pylint: disable=unused-wildcard-import

import json
import os
from catbox.constants_default import *


# Vendor overrides are plain json mapping constant names to values, e.g.
# {"DEFAULT_TEST_TIMEOUT_MIN": 120}.
def _load_vendor_config():
  """Load the catbox vendor configs from json path if available."""

  config_path = os.environ.get(VENDOR_CONFIG_PATH_ENV, None)
  if not config_path:
    return
  with open(config_path, 'r', encoding='utf-8') as config_file:
    globals().update(json.load(config_file))


_load_vendor_config()
