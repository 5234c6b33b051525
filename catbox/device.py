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

"""Device handle that drives an Android device through adb and fastboot.

The handle exposes the device operations used by catbox plugins: shell and
fastboot commands, multi-user management, reboots and package installs.
Every command runs synchronously on the host and is logged at DEBUG level.
"""

from __future__ import annotations

import dataclasses
import logging
import re
import subprocess
import time
from typing import List, NamedTuple, Optional, Set

from catbox import catbox_error
from catbox import constants
from catbox.catbox_enum import CommandStatus

_CREATED_USER_RE = re.compile(r'Success: created user id (\d+)')
_INTEGER_RE = re.compile(r'\d+')
_SUCCESS = 'Success'

STATE_ONLINE = 'ONLINE'
STATE_FASTBOOT = 'FASTBOOT'
STATE_NOT_AVAILABLE = 'NOT_AVAILABLE'
_UNKNOWN_PRODUCT = 'unknown'


@dataclasses.dataclass
class CommandResult:
  """Result of a command executed on the host or the device."""
  status: CommandStatus
  exit_code: Optional[int] = None
  stdout: str = ''
  stderr: str = ''


class DeviceDescriptor(NamedTuple):
  serial: str
  product: str
  state: str

  def __str__(self):
    return (f'[serial={self.serial}, product={self.product}, '
            f'state={self.state}]')


def _to_text(output) -> str:
  if output is None:
    return ''
  if isinstance(output, bytes):
    return output.decode('utf-8', errors='replace')
  return output


def run_command(cmd: List[str], timeout: float = None) -> CommandResult:
  """Runs a host command and captures its outcome.

  Args:
      cmd: The command and its arguments.
      timeout: Seconds to wait before the command is killed. None waits
        forever.

  Returns:
      A CommandResult. Timeouts and missing binaries are reported through
      the status instead of being raised.
  """
  logging.debug('Running command: %s', cmd)
  try:
    proc = subprocess.run(
        cmd,
        capture_output=True,
        encoding='utf-8',
        errors='replace',
        timeout=timeout,
        check=False,
    )
  except subprocess.TimeoutExpired as e:
    logging.debug('Command %s timed out after %ss.', cmd, timeout)
    return CommandResult(
        CommandStatus.TIMED_OUT, None, _to_text(e.stdout), _to_text(e.stderr))
  except OSError as e:
    logging.debug('Cannot run command %s. Error: %s', cmd, e)
    return CommandResult(CommandStatus.EXCEPTION, None, '', str(e))
  status = (CommandStatus.SUCCESS if proc.returncode == 0
            else CommandStatus.FAILED)
  logging.debug('Command %s exited with %s.', cmd, proc.returncode)
  return CommandResult(status, proc.returncode, proc.stdout, proc.stderr)


class AdbDevice:
  """An Android device reachable over adb, and over fastboot when flashed."""

  def __init__(self, serial: str, adb: str = constants.ADB,
               fastboot: str = constants.FASTBOOT):
    self._serial = serial
    self._adb = adb
    self._fastboot = fastboot
    self._product = None
    self._state = STATE_ONLINE

  def get_serial_number(self) -> str:
    return self._serial

  def __repr__(self):
    return f'AdbDevice({self._serial!r})'

  def get_device_descriptor(self) -> DeviceDescriptor:
    """Returns the descriptor attached to errors raised for this device."""
    if self._product is None and self._state == STATE_ONLINE:
      result = self.execute_shell_v2_command('getprop ro.product.name')
      if result.status == CommandStatus.SUCCESS and result.stdout.strip():
        self._product = result.stdout.strip()
    return DeviceDescriptor(
        self._serial, self._product or _UNKNOWN_PRODUCT, self._state)

  def _adb_cmd(self, *args: str) -> List[str]:
    return [self._adb, '-s', self._serial, *args]

  def _fastboot_cmd(self, *args: str) -> List[str]:
    return [self._fastboot, '-s', self._serial, *args]

  def execute_shell_command(
      self, cmd: str,
      timeout: float = constants.DEFAULT_SHELL_TIMEOUT_SECS) -> str:
    """Runs a shell command on the device and returns its stdout.

    Raises:
        DeviceNotAvailableError: If adb cannot reach the device.
    """
    result = run_command(self._adb_cmd('shell', cmd), timeout)
    if result.status in (CommandStatus.TIMED_OUT, CommandStatus.EXCEPTION):
      raise catbox_error.DeviceNotAvailableError(
          f'Failed to run "{cmd}": {result.stderr.strip()}', self._serial)
    return result.stdout

  def execute_shell_v2_command(
      self, cmd: str,
      timeout: float = constants.DEFAULT_SHELL_TIMEOUT_SECS) -> CommandResult:
    """Runs a shell command on the device and keeps its exit code."""
    return run_command(self._adb_cmd('shell', cmd), timeout)

  def execute_fastboot_command(
      self, *args: str,
      timeout: float = constants.DEFAULT_FASTBOOT_TIMEOUT_SECS
  ) -> CommandResult:
    """Runs a fastboot command against the device."""
    return run_command(self._fastboot_cmd(*args), timeout)

  def create_user(self, name: str) -> int:
    """Creates a secondary user and returns its id.

    Raises:
        DeviceRuntimeError: If the device does not report a created user.
    """
    output = self.execute_shell_command(f'pm create-user {name}')
    match = _CREATED_USER_RE.search(output)
    if not match:
      raise catbox_error.DeviceRuntimeError(
          f'Failed to create user {name}: {output.strip()}')
    return int(match.group(1))

  def remove_user(self, user_id: int) -> bool:
    output = self.execute_shell_command(f'pm remove-user {user_id}')
    return _SUCCESS in output

  def start_visible_background_user(
      self, user_id: int, display_id: int, wait_flag: bool) -> bool:
    """Starts a user in the background, visible on the given display."""
    wait = '-w ' if wait_flag else ''
    output = self.execute_shell_command(
        f'am start-user {wait}--display {display_id} {user_id}')
    return _SUCCESS in output

  def list_display_ids_for_starting_visible_background_users(self) -> Set[int]:
    """Lists the displays which can host a visible background user."""
    output = self.execute_shell_command(
        'cmd user list-displays-for-starting-users-visible-in-background')
    return {int(display_id) for display_id in _INTEGER_RE.findall(output)}

  def is_adb_root(self) -> bool:
    return self.execute_shell_command('id -u').strip() == '0'

  def enable_adb_root(self) -> bool:
    """Restarts adbd as root. Returns True if adbd runs as root after."""
    if self.is_adb_root():
      return True
    run_command(self._adb_cmd('root'), constants.DEFAULT_SHELL_TIMEOUT_SECS)
    run_command(self._adb_cmd('wait-for-device'),
                constants.BOOT_COMPLETE_TIMEOUT_SECS)
    return self.is_adb_root()

  def is_state_bootloader_or_fastbootd(self) -> bool:
    result = run_command([self._fastboot, 'devices'],
                         constants.DEFAULT_FASTBOOT_TIMEOUT_SECS)
    if result.status != CommandStatus.SUCCESS:
      return False
    for line in result.stdout.splitlines():
      fields = line.split()
      if fields and fields[0] == self._serial:
        return True
    return False

  def reboot_into_bootloader(self) -> None:
    """Reboots the device into the bootloader and waits for fastboot.

    Raises:
        DeviceNotAvailableError: If the device does not show up in fastboot.
    """
    logging.debug('Rebooting %s into bootloader.', self._serial)
    if self.is_state_bootloader_or_fastbootd():
      self.execute_fastboot_command('reboot-bootloader')
      self._wait_for_fastboot_disconnect()
    else:
      run_command(self._adb_cmd('reboot', 'bootloader'),
                  constants.DEFAULT_SHELL_TIMEOUT_SECS)
      self._wait_for_adb_disconnect()
    deadline = time.monotonic() + constants.BOOTLOADER_TIMEOUT_SECS
    while time.monotonic() < deadline:
      if self.is_state_bootloader_or_fastbootd():
        self._state = STATE_FASTBOOT
        return
      time.sleep(constants.POLL_INTERVAL_SECS)
    self._state = STATE_NOT_AVAILABLE
    raise catbox_error.DeviceNotAvailableError(
        'Device did not enter the bootloader.', self._serial)

  def reboot(self) -> None:
    """Reboots the device into Android and waits for boot completion.

    Raises:
        DeviceNotAvailableError: If the device does not finish booting.
    """
    logging.debug('Rebooting %s.', self._serial)
    if self.is_state_bootloader_or_fastbootd():
      self.execute_fastboot_command('reboot')
      self._wait_for_fastboot_disconnect()
    else:
      run_command(self._adb_cmd('reboot'),
                  constants.DEFAULT_SHELL_TIMEOUT_SECS)
      self._wait_for_adb_disconnect()
    self.wait_for_boot_complete()

  # Boot polling must not start while the old boot still answers.
  def _wait_for_adb_disconnect(self) -> None:
    result = run_command(self._adb_cmd('wait-for-disconnect'),
                         constants.DISCONNECT_TIMEOUT_SECS)
    if result.status != CommandStatus.SUCCESS:
      logging.debug('Device %s did not disconnect from adb: %s',
                    self._serial, result.status)

  def _wait_for_fastboot_disconnect(self) -> None:
    deadline = time.monotonic() + constants.DISCONNECT_TIMEOUT_SECS
    while time.monotonic() < deadline:
      if not self.is_state_bootloader_or_fastbootd():
        return
      time.sleep(constants.POLL_INTERVAL_SECS)
    logging.debug('Device %s did not leave fastboot.', self._serial)

  def wait_for_boot_complete(
      self, timeout: float = constants.BOOT_COMPLETE_TIMEOUT_SECS) -> None:
    deadline = time.monotonic() + timeout
    run_command(self._adb_cmd('wait-for-device'), timeout)
    while time.monotonic() < deadline:
      result = self.execute_shell_v2_command('getprop sys.boot_completed')
      if (result.status == CommandStatus.SUCCESS
          and result.stdout.strip() == '1'):
        self._state = STATE_ONLINE
        logging.debug('Device %s finished booting.', self._serial)
        return
      time.sleep(constants.POLL_INTERVAL_SECS)
    self._state = STATE_NOT_AVAILABLE
    raise catbox_error.DeviceNotAvailableError(
        f'Device did not finish booting in {timeout}s.', self._serial)

  def install_package_for_user(
      self, apk_path: str, reinstall: bool, user_id: Optional[int],
      *extra_args: str) -> Optional[str]:
    """Installs an APK for a single user, or for all users if user_id is None.

    Returns:
        None on success, otherwise the failure output of adb install.
    """
    install_args = ['-r'] if reinstall else []
    for arg in extra_args:
      if arg not in install_args:
        install_args.append(arg)
    user_args = ['--user', str(user_id)] if user_id is not None else []
    cmd = self._adb_cmd('install', *user_args, *install_args, apk_path)
    result = run_command(cmd, constants.DEFAULT_INSTALL_TIMEOUT_SECS)
    if result.status == CommandStatus.SUCCESS and _SUCCESS in result.stdout:
      return None
    return (result.stderr.strip() or result.stdout.strip()
            or f'adb install exited with {result.exit_code}')
