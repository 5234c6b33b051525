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

"""Base classes of the tests run by an invocation."""

from abc import ABC, abstractmethod

from catbox.test_information import TestInformation


class TestInvocationListener:
  """Receives the results of a test run. The default does nothing."""

  __test__ = False

  def test_run_started(self, run_name: str, test_count: int) -> None:
    pass

  def test_run_failed(self, error_message: str) -> None:
    pass

  def test_run_ended(self, elapsed_time_ms: int) -> None:
    pass


class RemoteTest(ABC):
  """A test driven from the host against the devices of the invocation."""

  ALIAS = None

  @abstractmethod
  def run(self, test_info: TestInformation,
          listener: TestInvocationListener) -> None:
    """Runs the test and reports to listener.

    Args:
        test_info: The TestInformation of the invocation.
        listener: The TestInvocationListener receiving the results.
    """
