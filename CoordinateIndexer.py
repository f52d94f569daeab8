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

"""CoordinateIndexer.py: two pass conversion of CSV rows to dense arrays

Pass 1 (discover) finds the distinct values of every dimension field, in the
order they are first seen.  Those values are the coordinates of the dimension,
and a value's position is its coordinate index.  Once every dimension's size
is known, each variable gets a dense array shaped by its dimensions.

Pass 2 (fill) re-reads exactly the rows pass 1 accepted, looks up each row's
coordinate indices and stores each variable's value at that position.

Which rows are valid is decided once, in pass 1, and reused by pass 2.
"""

import math

import numpy as np

import CSVFields
import Globals
from BaseLog import log_debug, log_info
from FieldMap import find_columns
from Globals import FieldType
from ParseErrors import ConsistencyError, TypeConversionError
from SampleData import Dimension, Variable

# NaN != NaN, so missing numeric coordinates share this key
_nan_key = object()


def coordinate_key(value):
    if isinstance(value, float) and math.isnan(value):
        return _nan_key
    return value


class CoordinateIndexer:
    """Builds dimensions and variables from resolved field map columns"""

    def __init__(self, resolved_columns, source="", min_fields=Globals.min_row_fields):
        self.source = source
        self.min_fields = min_fields
        self.dimension_columns = [
            rc for rc in resolved_columns if rc.descriptor.is_dimension
        ]
        self.variable_columns = [
            rc for rc in resolved_columns if not rc.descriptor.is_dimension
        ]
        dim_pos = {rc.name: ii for ii, rc in enumerate(self.dimension_columns)}
        # For each variable, the positions of its dimensions, in declared order
        self.variable_dims = [
            [dim_pos[d] for d in rc.descriptor.dimension_group]
            for rc in self.variable_columns
        ]

        # Per dimension - coordinate values in first seen order and key -> index
        self.coordinates = [[] for _ in self.dimension_columns]
        self.coordinate_index = [{} for _ in self.dimension_columns]

        self.valid_rows = []  # line numbers accepted by the discovery pass
        self.skipped_rows = 0
        self.frozen = False
        self.data = None

    def _row_fields(self, line):
        """Fields of a data row, or None for a blank/malformed row"""
        if not line.strip():
            return None
        fields = CSVFields.split_line(line)
        if len(fields) < self.min_fields:
            return None
        return fields

    def _value(self, rc, fields, line_no):
        try:
            return CSVFields.parse_value(fields, rc.column, rc.type)
        except TypeConversionError as exc:
            raise TypeConversionError(
                f"{self.source}({line_no}): {rc.name}: {exc}"
            ) from exc

    def discover(self, numbered_lines):
        """Pass 1 - collect the distinct values of each dimension

        numbered_lines - iterable of (line number, line) for the data rows
        """
        if self.frozen:
            raise RuntimeError("Discovery pass already run")

        for line_no, line in numbered_lines:
            fields = self._row_fields(line)
            if fields is None:
                self.skipped_rows += 1
                continue
            self.valid_rows.append(line_no)

            for k, rc in enumerate(self.dimension_columns):
                value = self._value(rc, fields, line_no)
                key = coordinate_key(value)
                if key not in self.coordinate_index[k]:
                    self.coordinate_index[k][key] = len(self.coordinates[k])
                    self.coordinates[k].append(value)

        self.frozen = True
        if self.skipped_rows:
            log_debug(f"Skipped {self.skipped_rows} blank or short rows in {self.source}")
        log_info(
            "%d rows, dimensions %s"
            % (
                len(self.valid_rows),
                ", ".join(
                    f"{rc.name}[{len(c)}]"
                    for rc, c in zip(self.dimension_columns, self.coordinates)
                ),
            )
        )
        self.allocate()

    def shape(self, var_index):
        return tuple(len(self.coordinates[d]) for d in self.variable_dims[var_index])

    def allocate(self):
        """Preallocate the dense array for every variable"""
        self.data = []
        for ii, rc in enumerate(self.variable_columns):
            shape = self.shape(ii)
            if rc.type == FieldType.string:
                self.data.append(np.full(shape, "", dtype=object))
            else:
                self.data.append(np.full(shape, np.nan))

    def lookup(self, k, value, line_no):
        """Coordinate index of value in dimension k - never adds new coordinates"""
        try:
            return self.coordinate_index[k][coordinate_key(value)]
        except KeyError as exc:
            raise ConsistencyError(
                f"{self.source}({line_no}): {self.dimension_columns[k].name} value {value!r} was not seen in the discovery pass"
            ) from exc

    def fill(self, numbered_lines):
        """Pass 2 - store every variable value at its row's coordinates

        numbered_lines must be the same rows given to discover()
        """
        if not self.frozen:
            raise RuntimeError("Discovery pass has not been run")

        valid = iter(self.valid_rows)
        expected = next(valid, None)
        filled = 0
        index = [0] * len(self.dimension_columns)
        for line_no, line in numbered_lines:
            if line_no != expected:
                continue
            expected = next(valid, None)
            fields = self._row_fields(line)
            if fields is None:
                raise ConsistencyError(
                    f"{self.source}({line_no}): row accepted by the discovery pass is now malformed"
                )

            for k, rc in enumerate(self.dimension_columns):
                index[k] = self.lookup(k, self._value(rc, fields, line_no), line_no)

            for ii, rc in enumerate(self.variable_columns):
                value = self._value(rc, fields, line_no)
                self.data[ii][tuple(index[d] for d in self.variable_dims[ii])] = value
            filled += 1

        if filled != len(self.valid_rows):
            raise ConsistencyError(
                f"{self.source}: discovery pass saw {len(self.valid_rows)} rows, fill pass {filled}"
            )

    def dimensions(self):
        """Dimension objects, in field map order"""
        dims = []
        for rc, values in zip(self.dimension_columns, self.coordinates):
            if rc.type == FieldType.string:
                data = np.array(values, dtype=object)
            else:
                data = np.array(values, dtype=float)
            dims.append(Dimension(rc.name, rc.type, data, qc=rc.descriptor.qc))
        return dims

    def variables(self):
        """Variable objects, in field map order"""
        return [
            Variable(
                rc.name,
                rc.type,
                list(self.variable_dims[ii]),
                self.data[ii],
                qc=rc.descriptor.qc,
            )
            for ii, rc in enumerate(self.variable_columns)
        ]


def index_csv(filename, field_map):
    """Reads a CSV file using the field map

    Returns (dimensions, variables)

    Raises:
        MissingColumnError, ConsistencyError, TypeConversionError, OSError
    """
    # Undecodable bytes become U+FFFD; find_columns blanks non-ascii header characters
    with open(filename, "r", encoding="utf-8", errors="replace", newline="") as fi:
        header = fi.readline()
        # A narrow file sets a lower bar for a complete row
        n_columns = len(CSVFields.split_line(CSVFields.clean_header(header)))
        indexer = CoordinateIndexer(
            find_columns(field_map, header),
            source=filename,
            min_fields=min(Globals.min_row_fields, n_columns),
        )

        indexer.discover(enumerate(fi, 2))

        fi.seek(0)
        fi.readline()
        indexer.fill(enumerate(fi, 2))

    return (indexer.dimensions(), indexer.variables())
