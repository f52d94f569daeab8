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

"""DatasetParams.py: per raw file parameters for QC and pre-processing routines

Parameters are kept in yaml files beside the raw data file:
    <raw file>.pqc - parameters of QC routines (names ending in QC)
    <raw file>.ppp - parameters of pre-processing routines (names ending in PP)

Each file maps routine name -> {parameter name: value}.
"""

import os

import yaml

from BaseLog import log_debug, log_info
from ParseErrors import ConfigError


def parameter_file_type(routine):
    """pqc, ppp or None for routines that do not keep parameters"""
    suffix = routine[-2:].lower()
    if suffix == "qc":
        return "pqc"
    if suffix == "pp":
        return "ppp"
    return None


def parameter_file(raw_data_file, routine):
    """Name of the parameter file for routine, moving a legacy
    <stem>.<type> file to the current name if one exists"""
    p_type = parameter_file_type(routine)
    if p_type is None:
        return None
    p_file = f"{raw_data_file}.{p_type}"
    old_p_file = f"{os.path.splitext(raw_data_file)[0]}.{p_type}"
    if old_p_file != p_file and os.path.exists(old_p_file):
        log_info(f"Moving {old_p_file} to {p_file}")
        os.replace(old_p_file, p_file)
    return p_file


def _load(p_file):
    if not os.path.exists(p_file):
        return {}
    try:
        with open(p_file, "r", encoding="utf-8") as fi:
            params = yaml.safe_load(fi)
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as exc:
        raise ConfigError(f"Could not read {p_file}: {exc}") from exc
    if params is None:
        return {}
    if not isinstance(params, dict):
        raise ConfigError(f"{p_file} does not hold a mapping")
    return params


def read_dataset_parameter(raw_data_file, routine, param, value):
    """Value of a routine's parameter for a raw data file

    Input:
        raw_data_file - the raw data file the parameters belong to
        routine - QC or pre-processing routine name
        param - parameter name, or "*" for all of the routine's parameters
        value - default returned when nothing is stored

    Returns:
        The stored value, (names, values) for "*", or the default

    Raises:
        KeyError if the routine has parameters but not param
        ConfigError for an unreadable parameter file
    """
    p_file = parameter_file(raw_data_file, routine)
    if p_file is None:
        return value

    params = _load(p_file)
    if routine not in params:
        return value

    routine_params = params[routine] or {}
    if param == "*":
        names = list(routine_params.keys())
        return (names, [routine_params[n] for n in names])
    if param not in routine_params:
        raise KeyError(f"{param} is not a parameter of {routine}")
    log_debug(f"{routine}.{param} = {routine_params[param]} from {p_file}")
    return routine_params[param]


def write_dataset_parameter(raw_data_file, routine, param, value):
    """Stores a routine's parameter for a raw data file

    Raises:
        ValueError for a routine that does not keep parameters
        ConfigError for an unreadable parameter file
    """
    p_file = parameter_file(raw_data_file, routine)
    if p_file is None:
        raise ValueError(f"{routine} is not a QC or pre-processing routine")

    params = _load(p_file)
    if not isinstance(params.get(routine), dict):
        params[routine] = {}
    params[routine][param] = value
    with open(p_file, "w", encoding="utf-8") as fo:
        yaml.safe_dump(params, fo, default_flow_style=False, sort_keys=False)
    log_debug(f"Wrote {routine}.{param} to {p_file}")
