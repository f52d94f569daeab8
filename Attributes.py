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

"""Attributes.py: global attribute files

Attribute files are either yaml (.yml/.yaml, a top level mapping) or plain
text with one attribute per line:

    [type,] name = value   % comment

type is S (string) or N (numeric).  Without a type, values that parse as
numbers are stored as floats.  Lines starting with # or % are comments.
"""

import os
import re

import yaml

import Globals
from BaseLog import log_debug, log_info, log_warning
from ParseErrors import ConfigError

_eq = re.compile(r"^\s*(?:([SN])\s*,\s*)?([A-Za-z_][\w.\-]*)\s*=(.*)$")
_comment = re.compile(r"\s+[#%].*$")


def _convert(value, type_tag):
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "'\"":
        return value[1:-1]
    if type_tag == "S":
        return value
    try:
        return float(value)
    except ValueError:
        if type_tag == "N":
            raise
        return value


def read_attribute_file(filename):
    """Reads name/value pairs from an attribute file

    Returns a dictionary of the attributes, in file order

    Raises:
        ConfigError for an unreadable or malformed file
    """
    if os.path.splitext(filename)[1].lower() in (".yml", ".yaml"):
        try:
            with open(filename, "r", encoding="utf-8") as fi:
                atts = yaml.safe_load(fi)
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as exc:
            raise ConfigError(f"Could not read {filename}: {exc}") from exc
        if atts is None:
            return {}
        if not isinstance(atts, dict):
            raise ConfigError(f"{filename} does not hold a mapping")
        return atts

    atts = {}
    try:
        with open(filename, "r", encoding="utf-8") as fi:
            for line_no, line in enumerate(fi, 1):
                line = line.strip()
                if not line or line[0] in Globals.field_map_comment_chars:
                    continue
                m = _eq.match(_comment.sub("", line))
                if m is None:
                    raise ConfigError(f"{filename}({line_no}): expected name = value")
                type_tag, name, value = m.groups()
                try:
                    atts[name] = _convert(value, type_tag)
                except ValueError as exc:
                    raise ConfigError(
                        f"{filename}({line_no}): {name} is not numeric"
                    ) from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Could not read {filename}: {exc}") from exc
    return atts


def merge_attributes(target, atts):
    """Copies atts into target, never replacing an entry target already has"""
    for key, value in atts.items():
        if key in target:
            continue
        target[key] = value
    return target


def get_attributes(sample_data, filename):
    """Merges the attributes in filename, if it exists, into sample_data

    A file that cannot be read is reported and skipped.
    """
    if not filename or not os.path.isfile(filename):
        log_debug(f"No attribute file {filename} - skipping")
        return sample_data
    try:
        atts = read_attribute_file(filename)
    except ConfigError as exc:
        log_warning(f"Unable to read attributes from {filename}: {exc}")
        return sample_data
    merge_attributes(sample_data.attributes, atts)
    log_info(f"Merged {len(atts)} attribute(s) from {filename}")
    return sample_data


def attribute_files(csv_file, platform=None, platform_dir=None):
    """Candidate attribute files for a CSV laid out as site/vessel/voyage/file.csv,
    in the order they are merged"""
    voyage_path = os.path.dirname(os.path.abspath(csv_file))
    vessel_path = os.path.dirname(voyage_path)
    site_path = os.path.dirname(vessel_path)
    files = [
        os.path.join(voyage_path, Globals.voyage_attribute_file),
        os.path.join(vessel_path, Globals.vessel_attribute_file),
        os.path.join(site_path, Globals.site_attribute_file),
    ]
    if platform:
        files.append(
            os.path.join(
                platform_dir or os.getcwd(),
                f"{platform}{Globals.platform_attribute_suffix}",
            )
        )
    return files
