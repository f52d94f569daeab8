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


"""
Package versions and constants common to the instrument parsers
"""

from enum import Enum

# These document level of functionality
parser_version = "1.0.0"
quality_control_version = "1.0"


# pylint: disable=E0239
class FieldType(str, Enum):
    """Field type tags used in the field map file"""

    string = "S"
    numeric = "N"
    date = "D"
    time = "T"
    datetime = "DT"


field_type_tags = tuple(t.value for t in FieldType)
# Types whose values are instants/durations in seconds
time_field_types = (FieldType.date, FieldType.time, FieldType.datetime)

# Rows with fewer fields than this are considered blank or malformed
min_row_fields = 4
# Field map lines starting with these are comments
field_map_comment_chars = ("#", "%")

# Default field map, looked for next to this module if none is configured
default_field_map = "echoview_config.txt"

# Attribute files searched for relative to an input CSV file - in merge order
voyage_attribute_file = "voyage_attributes.txt"
vessel_attribute_file = "vessel_attributes.txt"
site_attribute_file = "site_attributes.txt"
platform_attribute_suffix = "_attributes.txt"

# Instrument defaults for echo sounder exports
echoview_instrument_make = "Simrad"
echoview_instrument_model = "ES60"
echoview_site_code = "SOOP-BA"
echoview_level = 2

# Nominal atmospheric pressure (dbar) removed from absolute pressure
atmospheric_pressure_dbar = 10.1325
