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

"""
Various globals used by catbox.
"""

import os

# ANSI code shift for colorful print
BLACK, RED, GREEN, YELLOW, BLUE, MAGENTA, CYAN, WHITE = range(8)

# Host binaries.
ADB = 'adb'
FASTBOOT = 'fastboot'

# Environment variables.
ANDROID_SERIAL = 'ANDROID_SERIAL'
VENDOR_CONFIG_PATH_ENV = 'CATBOX_VENDOR_CONFIG_PATH'
TESTCASES_DIR_ENV = 'CATBOX_TESTCASES_DIR'
RESULT_ROOT_ENV = 'CATBOX_RESULT_ROOT'

# Results and logs.
CATBOX_RESULT_ROOT = os.environ.get(RESULT_ROOT_ENV, '/tmp/catbox_result')
LOG_FILE_NAME = 'catbox.log'
TEST_RUN_DIR_PREFIX = '%Y%m%d_%H%M%S'

# Where packaged test artifacts live when no testcases dir is configured.
# Resolved relative to the installed catbox package.
DEFAULT_TESTCASES_DIR = os.path.join(
    os.path.dirname(os.path.dirname(os.path.realpath(__file__))), 'testcases')

# Device command timeouts, in seconds.
DEFAULT_SHELL_TIMEOUT_SECS = 5 * 60
DEFAULT_FASTBOOT_TIMEOUT_SECS = 60
DEFAULT_INSTALL_TIMEOUT_SECS = 10 * 60
BOOT_COMPLETE_TIMEOUT_SECS = 5 * 60
BOOTLOADER_TIMEOUT_SECS = 2 * 60
DISCONNECT_TIMEOUT_SECS = 30
POLL_INTERVAL_SECS = 2

# Invocation config keys.
CONFIG_KEY_TARGET_PREPARERS = 'target_preparers'
CONFIG_KEY_TESTS = 'tests'
CONFIG_KEY_CLASS = 'class'
CONFIG_KEY_OPTIONS = 'options'

# Packages touched by the passenger load preparer.
DEFAULT_YOUTUBE_PACKAGE = 'com.google.android.apps.automotive.youtube'
CHROME_BETA_PACKAGE = 'com.chrome.beta'
GAS_PACKAGES = (
    'com.google.android.apps.maps',
    'com.android.vending',
    'com.google.android.carassistant',
)
SETUP_WIZARD_EXIT_ACTIVITY = (
    'com.google.android.car.setupwizard/.ExitActivity')
DEFAULT_DISPLAY_ID = 0

# Defaults for the low performance preparer.
DEFAULT_LOW_PERF_NR_CPUS = '4'
DEFAULT_LOW_PERF_MEM_GB = '4'

# Defaults for the Moped runner, in minutes.
DEFAULT_UNZIP_BUILD_TIMEOUT_MIN = 10
DEFAULT_TEST_TIMEOUT_MIN = 60
MOPED_RUN_SCRIPT = 'run.sh'
