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

"""CSVFields.py: splitting CSV lines and converting fields to typed values

Limitations:
  Text quoting is not supported (fields cannot contain ,)
  Dates are only supported in the format yyyymmdd
  Times are only supported in the format HH:MM:SS.ss
  Timestamps are only supported as a date field followed by a time field
  yyyymmdd, HH:MM:SS.ss
  Rows with fewer than 4 fields are skipped as blank or malformed, or with
  fewer fields than the header when the header has under 4 columns
  Files are decoded as utf-8; undecodable bytes become U+FFFD and non-ascii
  header characters become blanks
"""

import calendar
import datetime
import re

from Globals import FieldType
from ParseErrors import TypeConversionError

nan = float("nan")

time_re = re.compile(r"^(\d{1,2}):(\d{2}):(\d{2}(?:\.\d*)?)$")


def split_line(line):
    """Convert a comma separated line to a list of trimmed string fields"""
    return [f.strip() for f in line.rstrip("\r\n").split(",")]


def clean_header(line):
    """Replace non-ascii characters in a header line with blanks"""
    return "".join(c if ord(c) <= 127 else " " for c in line)


def parse_date(value):
    """yyyymmdd -> seconds since 1970-01-01 UTC"""
    try:
        if len(value) < 8 or not value[:8].isdigit():
            raise ValueError(value)
        date = datetime.date(int(value[0:4]), int(value[4:6]), int(value[6:8]))
        return float(calendar.timegm(date.timetuple()))
    except (ValueError, OverflowError) as exc:
        raise TypeConversionError(f"Could not convert date [{value}]") from exc


def parse_time(value):
    """HH:MM:SS.fff -> seconds since midnight"""
    m = time_re.match(value)
    if not m:
        raise TypeConversionError(f"Could not convert time [{value}]")
    hh, mn, ss = int(m.group(1)), int(m.group(2)), float(m.group(3))
    if hh > 23 or mn > 59 or ss >= 61.0:
        raise TypeConversionError(f"Time [{value}] out of range")
    return hh * 3600.0 + mn * 60.0 + ss


def parse_value(fields, column, field_type):
    """Get a value from the indicated (0-based) column of the specified type

    A DT value consumes two columns - the date in fields[column] and the time
    in fields[column + 1]
    """
    try:
        value = fields[column]
    except IndexError as exc:
        if field_type == FieldType.numeric:
            return nan
        if field_type == FieldType.string:
            return ""
        raise TypeConversionError(f"No column {column} in row") from exc

    if field_type == FieldType.string:
        if len(value) >= 2 and value[0] == '"' and value[-1] == '"':
            value = value[1:-1]
        return value
    elif field_type == FieldType.numeric:
        try:
            return float(value)
        except ValueError:
            return nan
    elif field_type == FieldType.date:
        return parse_date(value)
    elif field_type == FieldType.time:
        return parse_time(value)
    elif field_type == FieldType.datetime:
        try:
            time_value = fields[column + 1]
        except IndexError as exc:
            raise TypeConversionError(
                f"No time column following date [{value}]"
            ) from exc
        return parse_date(value[:8]) + parse_time(time_value)
    raise ValueError(f"Unknown field type {field_type}")

