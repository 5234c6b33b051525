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
Catbox custom enum class.
"""

from enum import Enum, IntEnum, unique


@unique
class ExitCode(IntEnum):
  """An Enum class for sys.exit()"""
  SUCCESS = 0
  ERROR = 1
  CONFIG_INVALID = 2
  SETUP_FAILURE = 3
  TEST_FAILURE = 4
  DEVICE_NOT_AVAILABLE = 5
  DEVICE_NOT_FOUND = 6


@unique
class ErrorIdentifier(Enum):
  """Identifies the root cause carried by a setup error."""
  INVOCATION_CANCELLED = 'invocation_cancelled'
  OPTION_CONFIGURATION_ERROR = 'option_configuration_error'
  DEVICE_FAILED_TO_REBOOT = 'device_failed_to_reboot'
  USER_OPERATION_FAILED = 'user_operation_failed'
  TEST_SKIPPED_BY_PROPERTY = 'test_skipped_by_property'
  APK_INSTALLATION_FAILED = 'apk_installation_failed'


@unique
class CommandStatus(Enum):
  """Outcome of a command executed on the host or the device."""
  SUCCESS = 'success'
  FAILED = 'failed'
  TIMED_OUT = 'timed_out'
  EXCEPTION = 'exception'
