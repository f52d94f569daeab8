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

"""SampleData.py: in-memory representation of a parsed instrument file

A SampleData holds ordered dimensions, ordered variables (whose dimensions
are indices into the dimension list), scalar global attributes and the meta
information used to name output files.
"""

from __future__ import annotations

import dataclasses
import sys
from typing import Any

import numpy as np
import xarray as xr

import QC
from BaseLog import log_debug
from Globals import FieldType

time_units = "seconds since 1970-01-01T00:00:00Z"


@dataclasses.dataclass
class Dimension:
    """A named coordinate axis - data holds the distinct values in coordinate order"""

    name: str
    type: FieldType | None
    data: np.ndarray
    comment: str = ""
    qc: str | None = None
    flags: np.ndarray | None = None

    @property
    def size(self) -> int:
        return len(self.data)


@dataclasses.dataclass
class Variable:
    """A named field varying over one or more dimensions"""

    name: str
    type: FieldType | None
    dimensions: list[int]
    data: np.ndarray
    comment: str = ""
    coordinates: str = ""
    qc: str | None = None
    flags: np.ndarray | None = None


@dataclasses.dataclass
class SampleData:
    """Dimensions, variables and metadata for one input file"""

    toolbox_input_file: str = ""
    dimensions: list[Dimension] = dataclasses.field(default_factory=list)
    variables: list[Variable] = dataclasses.field(default_factory=list)
    attributes: dict[str, Any] = dataclasses.field(default_factory=dict)
    meta: dict[str, Any] = dataclasses.field(default_factory=dict)

    def get_dimension(self, name: str) -> Dimension | None:
        for dim in self.dimensions:
            if dim.name == name:
                return dim
        return None

    def get_variable(self, name: str) -> Variable | None:
        for var in self.variables:
            if var.name == name:
                return var
        return None

    def variable_dimension_names(self, var: Variable) -> tuple[str, ...]:
        return tuple(self.dimensions[d].name for d in var.dimensions)

    def to_xarray(self) -> xr.Dataset:
        """Build an xarray Dataset for downstream QC/export stages"""
        coords = {}
        for dim in self.dimensions:
            coords[dim.name] = xr.Variable(
                dim.name, dim.data, attrs=_field_attrs(dim.type, dim.comment)
            )
        data_vars = {}
        for var in self.variables:
            dim_names = self.variable_dimension_names(var)
            attrs = _field_attrs(var.type, var.comment)
            if var.coordinates:
                attrs["coordinates"] = var.coordinates
            data_vars[var.name] = xr.Variable(dim_names, var.data, attrs=attrs)

        for field, dim_names in [(d, (d.name,)) for d in self.dimensions] + [
            (v, self.variable_dimension_names(v)) for v in self.variables
        ]:
            if field.flags is None:
                continue
            attrs = QC.qc_flag_attributes(field.flags)
            attrs["comment"] = f"QC expression: {field.qc}"
            data_vars[f"{field.name}_qc"] = xr.Variable(
                dim_names, field.flags, attrs=attrs
            )

        return xr.Dataset(data_vars=data_vars, coords=coords, attrs=dict(self.attributes))


def _field_attrs(field_type, comment):
    attrs = {}
    if field_type in (FieldType.date, FieldType.datetime):
        attrs["units"] = time_units
    elif field_type == FieldType.time:
        attrs["units"] = "seconds since midnight"
    if comment:
        attrs["comment"] = comment
    return attrs


def _scalar(data):
    """The lone value of a single element array as a python scalar"""
    value = np.asarray(data).reshape(-1)[0]
    return value.item() if isinstance(value, np.generic) else value


def collapse_singletons(sample_data: SampleData) -> SampleData:
    """Convert singleton dimensions and variables to global attributes

    Any dimension with exactly one value becomes an attribute named after the
    dimension.  Variables are stripped of those dimensions; a variable left with
    no dimensions becomes an attribute as well.  The surviving dimensions and
    variables are rebuilt as new lists, with variable dimension references
    remapped to the new dimension positions.
    """
    remove = {
        ii for ii, dim in enumerate(sample_data.dimensions) if dim.size == 1
    }
    if not remove:
        return sample_data

    for ii in sorted(remove):
        dim = sample_data.dimensions[ii]
        sample_data.attributes[dim.name] = _scalar(dim.data)
        log_debug(f"Dimension {dim.name} is a singleton - now a global attribute")

    # old index -> new index for surviving dimensions
    remap = {}
    for ii in range(len(sample_data.dimensions)):
        if ii not in remove:
            remap[ii] = len(remap)

    new_variables = []
    for var in sample_data.variables:
        kept_axes = [a for a, d in enumerate(var.dimensions) if d not in remove]
        removed_axes = tuple(a for a, d in enumerate(var.dimensions) if d in remove)
        if not kept_axes:
            sample_data.attributes[var.name] = _scalar(var.data)
            log_debug(f"Variable {var.name} is a singleton - now a global attribute")
            continue
        if removed_axes:
            var.data = np.squeeze(var.data, axis=removed_axes)
            if var.flags is not None:
                var.flags = np.squeeze(var.flags, axis=removed_axes)
        var.dimensions = [remap[var.dimensions[a]] for a in kept_axes]
        new_variables.append(var)

    sample_data.dimensions = [
        dim for ii, dim in enumerate(sample_data.dimensions) if ii not in remove
    ]
    sample_data.variables = new_variables
    return sample_data


def print_summary(sample_data: SampleData, fo=None) -> None:
    """Human readable listing of a SampleData - to stdout unless fo is given"""
    if fo is None:
        fo = sys.stdout
    print(f"File: {sample_data.toolbox_input_file}", file=fo)
    print("Dimensions:", file=fo)
    for dim in sample_data.dimensions:
        print(f"  {dim.name}[{dim.size}]", file=fo)
    print("Variables:", file=fo)
    for var in sample_data.variables:
        dims = ",".join(sample_data.variable_dimension_names(var))
        flags = " (flags)" if var.flags is not None else ""
        print(f"  {var.name}({dims}){flags}", file=fo)
    print("Attributes:", file=fo)
    for key, value in sample_data.attributes.items():
        print(f"  {key} = {value}", file=fo)
    print("Meta:", file=fo)
    for key, value in sample_data.meta.items():
        print(f"  {key} = {value}", file=fo)
