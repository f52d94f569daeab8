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

"""Global coverage attributes from the TIME, LATITUDE, LONGITUDE and DEPTH fields"""

import numpy as np

from BaseLog import log_debug


def _field_data(sample_data, name):
    """Data for name - from a dimension, else a variable, else a scalar attribute"""
    dim = sample_data.get_dimension(name)
    if dim is not None:
        return dim.data
    var = sample_data.get_variable(name)
    if var is not None:
        return var.data
    if name in sample_data.attributes:
        return sample_data.attributes[name]
    return None


def _numeric(data):
    """Flattened float array with the NaNs removed, or None"""
    if data is None:
        return None
    try:
        values = np.asarray(data, dtype=float).reshape(-1)
    except (TypeError, ValueError):
        return None
    return values[np.logical_not(np.isnan(values))]


def _min_max(values):
    if values is None or values.size == 0:
        return (np.nan, np.nan)
    return (float(np.min(values)), float(np.max(values)))


def _set_attribute(sample_data, name, value):
    if name in sample_data.attributes or np.isnan(value):
        return
    sample_data.attributes[name] = value
    log_debug(f"{name} = {value}")


def longitude_bounds(lon):
    """(min, max) of the longitudes in [-360, 360]

    A span of more than 350 degrees is taken to be a track crossing the
    antimeridian: the minimum is then the smallest positive longitude and the
    maximum the largest negative one.
    """
    lon = lon[np.logical_and(lon >= -360, lon <= 360)]
    min_lon, max_lon = _min_max(lon)
    if max_lon - min_lon > 350 and np.any(lon > 0) and np.any(lon < 0):
        min_lon = float(np.min(lon[lon > 0]))
        max_lon = float(np.max(lon[lon < 0]))
    return (min_lon, max_lon)


def latitude_bounds(lat):
    """(min, max) of the latitudes in [-90, 90]"""
    return _min_max(lat[np.logical_and(lat >= -90, lat <= 90)])


def get_bounds(sample_data):
    """Assigns time_coverage_*, geospatial_lat_*, geospatial_lon_* and
    geospatial_vertical_* attributes that are not already set"""
    time = _numeric(_field_data(sample_data, "TIME"))
    if time is not None:
        min_time, max_time = _min_max(time)
        _set_attribute(sample_data, "time_coverage_start", min_time)
        _set_attribute(sample_data, "time_coverage_end", max_time)

    lat = _numeric(_field_data(sample_data, "LATITUDE"))
    if lat is not None:
        min_lat, max_lat = latitude_bounds(lat)
        _set_attribute(sample_data, "geospatial_lat_min", min_lat)
        _set_attribute(sample_data, "geospatial_lat_max", max_lat)

    lon = _numeric(_field_data(sample_data, "LONGITUDE"))
    if lon is not None:
        min_lon, max_lon = longitude_bounds(lon)
        _set_attribute(sample_data, "geospatial_lon_min", min_lon)
        _set_attribute(sample_data, "geospatial_lon_max", max_lon)

    depth = _numeric(_field_data(sample_data, "DEPTH"))
    if depth is not None:
        min_depth, max_depth = _min_max(depth)
        _set_attribute(sample_data, "geospatial_vertical_min", min_depth)
        _set_attribute(sample_data, "geospatial_vertical_max", max_depth)

    return sample_data
