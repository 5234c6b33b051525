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
Exceptions raised by catbox plugins and the device handle.
"""


class Error(Exception):
  """Base class for all catbox exceptions."""


class ConfigurationError(Error):
  """Raised for unknown plugins, unknown options or invalid option values."""


class BuildError(Error):
  """Raised when the build under test cannot be used."""


class DeviceRuntimeError(Error):
  """Raised when a device operation returns an unexpected response."""


class TargetSetupError(Error):
  """Raised when a target preparer fails to set the device up.

  Attributes:
      device_descriptor: The DeviceDescriptor of the device being prepared,
        or None if the failure is not tied to a device.
      error_identifier: An ErrorIdentifier naming the failure cause.
  """

  def __init__(self, message, device_descriptor=None, error_identifier=None):
    super().__init__(message)
    self.message = message
    self.device_descriptor = device_descriptor
    self.error_identifier = error_identifier

  def __str__(self):
    if self.device_descriptor is None:
      return self.message
    return f'{self.message} {self.device_descriptor}'


class DeviceNotAvailableError(Error):
  """Raised when the device can no longer be used by the invocation."""

  def __init__(self, message, serial, cause=None):
    super().__init__(message)
    self.message = message
    self.serial = serial
    self.cause = cause

  def __str__(self):
    return f'{self.message} (serial: {self.serial})'
