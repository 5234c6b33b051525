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

"""Base class of the target preparers run around a test module."""

from abc import ABC, abstractmethod
from typing import Optional

from catbox.options import Option
from catbox.test_information import TestInformation


class BaseTargetPreparer(ABC):
  """A plugin that configures the device before and after a test module.

  The invocation calls set_up() before the tests run. It then calls
  tear_down() once the tests are done, or once a later set_up() failed.
  """

  ALIAS = None

  disable = Option(
      'disable', default=False, type=bool,
      description='Skip both set up and tear down of this preparer.')
  disable_tear_down = Option(
      'disable-tear-down', default=False, type=bool,
      description='Skip the tear down of this preparer.')

  def is_disabled(self) -> bool:
    return self.disable

  def is_tear_down_disabled(self) -> bool:
    return self.disable_tear_down

  @abstractmethod
  def set_up(self, test_info: TestInformation) -> None:
    """Prepares the device of the invocation.

    Args:
        test_info: The TestInformation of the invocation.

    Raises:
        TargetSetupError: If the device cannot be prepared.
        BuildError: If the build under test cannot be used.
        DeviceNotAvailableError: If the device is lost.
    """

  def tear_down(self, test_info: TestInformation,
                error: Optional[BaseException]) -> None:
    """Restores the device after the tests ran.

    Args:
        test_info: The TestInformation of the invocation.
        error: The error that ended the invocation early, if any.
    """
