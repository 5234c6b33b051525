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

"""Information shared by the plugins of a single invocation."""

from pathlib import Path
from typing import List, Sequence

from catbox import device as device_lib


class TestInformation:
  """Devices and host folders allocated to one invocation.

  The first device is the primary device that preparers act on. Runners may
  use all of them.
  """

  # Not a test class; keeps pytest from collecting it.
  __test__ = False

  def __init__(self, devices: Sequence[device_lib.AdbDevice],
               dependencies_folder: Path):
    if not devices:
      raise ValueError('An invocation needs at least one device.')
    self._devices = list(devices)
    self._dependencies_folder = Path(dependencies_folder)

  def get_device(self) -> device_lib.AdbDevice:
    return self._devices[0]

  def get_devices(self) -> List[device_lib.AdbDevice]:
    return list(self._devices)

  @property
  def dependencies_folder(self) -> Path:
    return self._dependencies_folder
