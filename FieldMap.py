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

"""FieldMap.py: field map (CSV column to sample data field) configuration

Each field map line has:
 - the field name as it will appear in the sample data,
 - the column name as it appears in the CSV header,
 - the field's dimension(s), blank separated (empty for a dimension),
 - the field's type (S, N, D, T or DT),
 - an optional quality control expression
"""

import dataclasses

import CSVFields
import Globals
from BaseLog import log_debug, log_info
from Globals import FieldType
from ParseErrors import ConfigError, MissingColumnError
from QC import QCExpression


@dataclasses.dataclass(frozen=True)
class FieldDescriptor:
    """One field map entry"""

    name: str
    column_name: str
    dimension_group: tuple[str, ...]
    type: FieldType
    qc: str | None = None

    @property
    def is_dimension(self) -> bool:
        return len(self.dimension_group) == 0


@dataclasses.dataclass(frozen=True)
class ResolvedColumn:
    """A field descriptor bound to the 0-based column index of a particular file"""

    descriptor: FieldDescriptor
    column: int

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def type(self) -> FieldType:
        return self.descriptor.type


def parse_field_map_line(line):
    """Parse a single field map line

    Returns a FieldDescriptor, or None for comments, blank or short lines
    """
    if line.lstrip().startswith(Globals.field_map_comment_chars):
        return None
    fields = CSVFields.split_line(line)
    if len(fields) < 4:
        return None

    name, column_name, dimension, type_tag = fields[0:4]
    try:
        field_type = FieldType(type_tag)
    except ValueError as exc:
        raise ConfigError(
            f"Unknown type [{type_tag}] for field {name} - expected one of {Globals.field_type_tags}"
        ) from exc

    # QC expressions may contain commas of their own
    qc = ",".join(fields[4:]).strip() or None
    if qc:
        # Syntax problems are reported now rather than after the data is read
        QCExpression(qc)

    return FieldDescriptor(name, column_name, tuple(dimension.split()), field_type, qc)


def load_field_map(config):
    """Reads a field map file

    Returns an ordered list of FieldDescriptors, in file order

    Raises:
        ConfigError for a missing or unreadable file, or an inconsistent map
    """
    try:
        with open(config, "r", encoding="utf-8", errors="replace") as fi:
            lines = fi.readlines()
    except OSError as exc:
        raise ConfigError(f"Unable to read field map {config}") from exc

    field_map = []
    for line_count, line in enumerate(lines, 1):
        try:
            descriptor = parse_field_map_line(line)
        except ConfigError as exc:
            raise ConfigError(f"{config}({line_count}): {exc}") from exc
        if descriptor is None:
            continue
        field_map.append(descriptor)

    check_field_map(field_map, config)
    log_info(f"Loaded {len(field_map)} fields from {config}")
    return field_map


def check_field_map(field_map, config=""):
    """Checks names are unique and every dimension group names declared dimensions"""
    names = set()
    for fd in field_map:
        if fd.name in names:
            raise ConfigError(f"Field {fd.name} declared more than once in {config}")
        names.add(fd.name)

    dimension_names = {fd.name for fd in field_map if fd.is_dimension}
    for fd in field_map:
        for dim in fd.dimension_group:
            if dim not in dimension_names:
                raise ConfigError(
                    f"Field {fd.name} varies over {dim}, which is not a dimension in {config}"
                )


def find_columns(field_map, header_line):
    """Matches the field map column names with the CSV header

    Returns a list of ResolvedColumn in field map order.  If a column name
    appears more than once, the last match wins.

    Raises:
        MissingColumnError if any field's column is not in the header
    """
    columns = CSVFields.split_line(CSVFields.clean_header(header_line))

    resolved = []
    for fd in field_map:
        column = None
        for ii, column_name in enumerate(columns):
            if column_name == fd.column_name:
                column = ii
        if column is None:
            raise MissingColumnError(fd.column_name)
        log_debug(f"{fd.name} <- column {column} ({fd.column_name})")
        resolved.append(ResolvedColumn(fd, column))
    return resolved
