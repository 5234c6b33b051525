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
Utility functions for catbox.
"""

import logging
import os
import sys
from pathlib import Path

from catbox import constants

_CACHED_HAS_COLORS = {}


def _has_colors(stream):
  """Check the output stream is colorful.

  Args:
      stream: The standard file stream.

  Returns:
      True if the file stream can interpreter the ANSI color code.
  """
  if stream in _CACHED_HAS_COLORS:
    return _CACHED_HAS_COLORS[stream]
  # Auto color only on TTYs
  has_colors = hasattr(stream, 'isatty') and stream.isatty()
  _CACHED_HAS_COLORS[stream] = has_colors
  return has_colors


def colorize(text, color, bp_color=None):
  """Convert to colorful string with ANSI escape code.

  Args:
      text: A string to print.
      color: Forground(Text) color which is an ANSI code shift for colorful
        print. They are defined in constants_default.py.
      bp_color: Backgroud color which is an ANSI code shift for colorful
        print.

  Returns:
      Colorful string with ANSI escape code.
  """
  if not _has_colors(sys.stdout):
    return text
  background_color = ''
  if bp_color:
    # Background ranges from 40-47
    background_color = ';%d' % (40 + bp_color)
  # Foreground(Text) ranges from 30-37
  text_color = 30 + color
  return '\033[1;%d%sm%s\033[0m' % (text_color, background_color, text)


def colorful_print(text, color, bp_color=None, auto_wrap=True):
  """Print out the text with color.

  Args:
      text: A string to print.
      color: Forground(Text) color which is an ANSI code shift for colorful
        print. They are defined in constants_default.py.
      bp_color: Backgroud color which is an ANSI code shift for colorful
        print.
      auto_wrap: If True, Text wraps while print.
  """
  output = colorize(text, color, bp_color)
  if auto_wrap:
    print(output)
  else:
    print(output, end='')


def mark_red(text):
  return colorize(text, constants.RED)


def mark_yellow(text):
  return colorize(text, constants.YELLOW)


def print_and_log_error(error_message, *args):
  """Print error message to stderr and log it at ERROR level."""
  error_message = error_message % args if args else error_message
  logging.error(error_message)
  print(mark_red(error_message), file=sys.stderr)


def print_and_log_warning(warning_message, *args):
  """Print warning message to stderr and log it at WARNING level."""
  warning_message = warning_message % args if args else warning_message
  logging.warning(warning_message)
  print(mark_yellow(warning_message), file=sys.stderr)


def print_and_log_info(info_message, *args):
  """Print info message to stdout and log it at INFO level."""
  info_message = info_message % args if args else info_message
  logging.info(info_message)
  print(info_message)


def strtobool(val):
  """Convert a string representation of truth to True or False.

  Args:
      val: a string of input value.

  Returns:
      True when values are 'y', 'yes', 't', 'true', 'on', and '1';
      False when 'n', 'no', 'f', 'false', 'off', and '0'.
      Raises ValueError if 'val' is anything else.
  """
  if val.lower() in ('y', 'yes', 't', 'true', 'on', '1'):
    return True
  if val.lower() in ('n', 'no', 'f', 'false', 'off', '0'):
    return False
  raise ValueError('invalid truth value %r' % (val,))


def get_testcases_dir() -> Path:
  """Returns the folder holding packaged test artifacts and APKs."""
  return Path(os.environ.get(constants.TESTCASES_DIR_ENV)
              or constants.DEFAULT_TESTCASES_DIR)
