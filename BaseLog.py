#! /usr/bin/env python
# -*- python-fmt -*-

## Copyright (c) 2023, 2024  University of Washington.
##
## Redistribution and use in source and binary forms, with or without
## modification, are permitted provided that the following conditions are met:
##
## 1. Redistributions of source code must retain the above copyright notice, this
##    list of conditions and the following disclaimer.
##
## 2. Redistributions in binary form must reproduce the above copyright notice,
##    this list of conditions and the following disclaimer in the documentation
##    and/or other materials provided with the distribution.
##
## 3. Neither the name of the University of Washington nor the names of its
##    contributors may be used to endorse or promote products derived from this
##    software without specific prior written permission.
##
## THIS SOFTWARE IS PROVIDED BY THE UNIVERSITY OF WASHINGTON AND CONTRIBUTORS “AS
## IS” AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE
## IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE ARE
## DISCLAIMED. IN NO EVENT SHALL THE UNIVERSITY OF WASHINGTON OR CONTRIBUTORS BE
## LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR
## CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT LIMITED TO, PROCUREMENT OF SUBSTITUTE
## GOODS OR SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS INTERRUPTION)
## HOWEVER CAUSED AND ON ANY THEORY OF LIABILITY, WHETHER IN CONTRACT, STRICT
## LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE) ARISING IN ANY WAY OUT
## OF THE USE OF THIS SOFTWARE, EVEN IF ADVISED OF THE POSSIBILITY OF SUCH DAMAGE.

""" Logging infrastructure shared by the instrument parsers """

import argparse
import collections
import inspect
import logging
import os
import traceback
from typing import DefaultDict

#                 debug,    info,      warning, error,    critical
_stack_options = ["caller", "caller", "caller", "caller", "exc"]  # default
# _stack_options = ['caller', None,      None,    None,     'exc'] # relative silence


class BaseLogger:
    """
    BaseLog: for use by all parser code and utilities
    """

    self = None  # the global instance
    is_initialized = False
    opts = None  # whatever starting options
    log = None  # the logger

    # warnings, errors, and criticals are always enabled
    # -v turns on log_info, --debug turns on log_debug
    debug_enabled = info_enabled = False
    debug_loc, info_loc, warning_loc, error_loc, critical_loc = _stack_options

    def __init__(self, opts: argparse.Namespace, include_time: bool = False) -> None:
        """
        Initializes a logging.Logger object, according to options (opts).
        """

        if not BaseLogger.is_initialized:
            BaseLogger.self = self
            BaseLogger.opts = opts

            calling_module = os.path.splitext(
                os.path.split(inspect.stack()[1].filename)[1]
            )[0]

            BaseLogger.log = logging.getLogger(calling_module)
            BaseLogger.log.setLevel(logging.DEBUG)

            # create a file handler if log filename is specified in opts
            base_log = getattr(opts, "base_log", None)
            if base_log:
                self.setHandler(logging.FileHandler(base_log), opts, include_time)

            # always create a console handler
            self.setHandler(logging.StreamHandler(), opts, include_time)

            BaseLogger.is_initialized = True
            log_info("Process id = %d" % os.getpid())
            if getattr(opts, "config_file_not_found", False):
                log_warning(f"Config file {opts.config_file_name} was not found")

    def setHandler(
        self,
        handle: logging.Handler,
        opts: argparse.Namespace | None,
        include_time: bool,
    ) -> None:
        """
        Set a logging handle.
        """
        if include_time:
            formatter = logging.Formatter(
                "%(asctime)s: %(levelname)s: %(message)s", "%H:%M:%S %d %b %Y %Z"
            )
        else:
            # Remove timestamps for easier log comparison and reading
            formatter = logging.Formatter("%(levelname)s: %(message)s")

        if opts is not None and getattr(opts, "debug", False):
            BaseLogger.debug_enabled = True
            BaseLogger.info_enabled = True
            handle.setLevel(logging.DEBUG)
        elif opts is not None and getattr(opts, "verbose", False):
            BaseLogger.info_enabled = True
            handle.setLevel(logging.INFO)
        else:
            handle.setLevel(logging.WARNING)

        handle.setFormatter(formatter)
        assert BaseLogger.log is not None
        BaseLogger.log.addHandler(handle)

        logging.captureWarnings(True)
        logging.getLogger("py.warnings").addHandler(handle)


# Used until BaseLogger has been initialized (library use, tests)
_default_log = logging.getLogger("BaseLog")


def _logger() -> logging.Logger:
    return BaseLogger.log if BaseLogger.log else _default_log


def __log_caller_info(s: object, loc: str | None) -> str:
    """Add stack or module: line number info for log caller to given string
    Input:
    s - object to be logged

    Return:
    string with possible location information added
    """
    s = str(s)
    if loc:
        try:
            # __log_caller_info(); log_XXXX; <caller>
            offset = 3
            if loc in ["caller", "parent"]:
                if loc == "parent":  # A utility routine
                    offset = offset + 1
                frame = traceback.extract_stack(None, offset)[0]
                module, lineno, _, _ = frame
                module = os.path.basename(module)
                s = "%s(%d): %s" % (module, lineno, s)
            elif loc == "exc":
                exc = traceback.format_exc()
                if exc and exc != "NoneType: None\n":
                    s = "%s:\n%s" % (s, exc)
            else:  # unknown location request
                s = "(%s?): %s" % (loc, s)
        except Exception:
            pass
    return s


def _over_max_count(
    counts: DefaultDict[str, int], s: str, max_count: int | None
) -> tuple[bool, str]:
    """Track how often a message has been issued from a location.

    A positive max_count indexes the count by module and line number, a negative
    one by module, line number and message.
    Returns (suppress, possibly annotated message)
    """
    if not max_count:
        return (False, s)
    k = s.split(":")[0]
    if max_count < 0:
        k = f"{k}:{s}"
    counts[k] += 1
    if counts[k] == abs(max_count):
        return (False, s + " (Max message count exceeded)")
    if counts[k] > abs(max_count):
        return (True, s)
    return (False, s)


def log_critical(s: object, loc: str = BaseLogger.critical_loc) -> None:
    """Report string to baselog as a CRITICAL error"""
    _logger().critical(__log_caller_info(s, loc))


log_error_max_count: DefaultDict[str, int] = collections.defaultdict(int)


def log_error(
    s: object,
    loc: str = BaseLogger.error_loc,
    max_count: int | None = None,
) -> None:
    """Report string to baselog as an ERROR
    Args:
        s: msg to be logged
        loc: "caller", "parent" or "exc" (appends the current traceback)
    """
    suppress, s = _over_max_count(
        log_error_max_count, __log_caller_info(s, loc), max_count
    )
    if not suppress:
        _logger().error(s)


log_warning_max_count: DefaultDict[str, int] = collections.defaultdict(int)


def log_warning(
    s: object,
    loc: str = BaseLogger.warning_loc,
    max_count: int | None = None,
) -> None:
    """Report string to baselog as a WARNING
    Input:
    s - string to be logged
    max_count - maximum number of times this warning should be issued.
                if a positive value, the count is indexed by the module name and line number
                if a negative value, the count is indexed by the module name, line number and warning string
    """
    suppress, s = _over_max_count(
        log_warning_max_count, __log_caller_info(s, loc), max_count
    )
    if not suppress:
        _logger().warning(s)


log_info_max_count: DefaultDict[str, int] = collections.defaultdict(int)


def log_info(
    s: object,
    loc: str = BaseLogger.info_loc,
    max_count: int | None = None,
) -> None:
    """Report string to baselog as INFO"""
    if BaseLogger.is_initialized and not BaseLogger.info_enabled:
        return

    suppress, s = _over_max_count(
        log_info_max_count, __log_caller_info(s, loc), max_count
    )
    if not suppress:
        _logger().info(s)


log_debug_max_count: DefaultDict[str, int] = collections.defaultdict(int)


def log_debug(
    s: object,
    loc: str | None = BaseLogger.debug_loc,
    max_count: int | None = None,
) -> None:
    """Report string to baselog as DEBUG info"""
    if BaseLogger.is_initialized and not BaseLogger.debug_enabled:
        return

    suppress, s = _over_max_count(
        log_debug_max_count, __log_caller_info(s, loc), max_count
    )
    if not suppress:
        _logger().debug(s)
