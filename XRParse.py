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

"""XRParse.py: RBR XR-420 and XR-620 logger text export readers

Both readers produce a SampleData with TIME, LATITUDE and LONGITUDE
dimensions (time series).  The XR-420 reader can also split a single cast
into descending and ascending profiles.
"""

import datetime
import re
import sys
import time

import numpy as np

import BaseOpts
import CSVFields
import Globals
from BaseLog import BaseLogger, log_critical, log_debug, log_error, log_info, log_warning
from Globals import FieldType
from ParseErrors import ParseError, TypeConversionError
from SampleData import Dimension, SampleData, Variable, print_summary

cphl_comment = (
    "Artificial chlorophyll data computed from fluorometry sensor raw counts "
    "measurements. Originally expressed in ug/l, 1l = 0.001m3 was assumed."
)

# column name -> (variable name, scale, comment)
xr420_channels = {
    "Cond": ("CNDC", 0.1, ""),
    "Temp": ("TEMP", 1.0, ""),
    "Pres": ("PRES", 1.0, ""),
    "FlCa": ("CPHL", 1.0, cphl_comment),
    "Depth": ("DEPTH", 1.0, ""),
}

xr620_channels = {
    "Cond": ("CNDC", 0.1, ""),
    "Temp": ("TEMP", 1.0, ""),
    "Pres": ("PRES", 1.0, ""),
    "FlC": ("CPHL", 1.0, cphl_comment),
    "FlCa": ("CPHL", 1.0, cphl_comment),
    "Turb": ("TURB", 1.0, ""),
    "R_D_O2": ("DOXS", 1.0, ""),
    "Depth": ("DEPTH", 1.0, ""),
    "Salin": ("PSAL", 1.0, ""),
    "SpecCond": ("SPEC_CNDC", 1.0e-4, ""),
    "SoSUN": ("SSPD", 1.0, ""),
    "rdO2C": (
        "DOX1",
        31.25,
        "Originally expressed in mg/l, 1mg/l = 31.25umol/l was assumed.",
    ),
}

# Columns read from XR-620 files but not carried into the sample data
xr620_dropped = ("R_Temp", "DensAnom")

profile_coordinates = "TIME DEPTH LATITUDE LONGITUDE"


def parse_timestamp(value):
    """yy/mm/dd HH:MM:SS[.fff] to seconds since 1970-01-01 UTC"""
    value = value.strip()
    for fmt in ("%y/%m/%d %H:%M:%S.%f", "%y/%m/%d %H:%M:%S"):
        try:
            dt = datetime.datetime.strptime(value, fmt)
        except ValueError:
            continue
        return dt.replace(tzinfo=datetime.timezone.utc).timestamp()
    raise TypeConversionError(f"Could not convert [{value}] to a timestamp")


def median_interval(times):
    if len(times) < 2:
        return np.nan
    return float(np.median(np.diff(times)))


#
# XR-420
#

xr420_header_exprs = {
    "instrument": re.compile(r"^([^ ]+) +([^ ]+) +([\d.]+) +(\d+) "),
    "start": re.compile(r"^Logging start +(\d\d/\d\d/\d\d \d\d:\d\d:\d\d)$"),
    "end": re.compile(r"^Logging end +(\d\d/\d\d/\d\d \d\d:\d\d:\d\d)$"),
    "interval": re.compile(r"^Sample period +(\d\d:\d\d:\d\d)$"),
    "correction": re.compile(r"^Correction to conductivity: (.*)$"),
    "counts": re.compile(
        r"^Number of channels = +(\d+), number of samples = +(\d+)"
    ),
}


def read_xr420_header(fi):
    """Reads the header block - everything up to the first blank line"""
    header = {}
    for line in fi:
        line = line.rstrip("\r\n")
        if not line.strip():
            break
        for key, expr in xr420_header_exprs.items():
            m = expr.search(line)
            if m is None:
                continue
            if key == "instrument":
                (
                    header["make"],
                    header["model"],
                    header["firmware"],
                    header["serial"],
                ) = m.groups()
            elif key in ("start", "end"):
                header[key] = parse_timestamp(m.group(1))
            elif key == "interval":
                header["interval"] = CSVFields.parse_time(m.group(1))
            elif key == "correction":
                header["correction"] = m.group(1)
            else:
                header["channels"] = int(m.group(1))
                header["samples"] = int(m.group(2))
    return header


def read_xr420_data(fi, header, filename=""):
    """Reads the column name line and the samples

    Returns (column names, samples x columns array, time stamps)
    """
    columns = fi.readline().split()
    if len(columns) > 3:
        # FlC-a
        columns[3] = "FlCa"
    n_channels = header.get("channels", len(columns))
    columns = columns[:n_channels]

    values = []
    for line_no, line in enumerate(fi):
        for token in line.split():
            try:
                values.append(float(token))
            except ValueError as exc:
                raise TypeConversionError(
                    f"{filename}: non-numeric sample [{token}] in data line {line_no + 1}"
                ) from exc
    n_samples = len(values) // n_channels if n_channels else 0
    if n_samples * n_channels != len(values):
        log_warning(f"{filename}: incomplete final sample ignored")
    samples = np.array(values[: n_samples * n_channels]).reshape(n_samples, n_channels)

    for key in ("start", "interval"):
        if key not in header:
            raise ParseError(f"{filename}: no logging {key} in header")
    times = header["start"] + np.arange(n_samples) * header["interval"]
    return (columns, samples, times)


def _xr_sample_data(filename, header):
    sample_data = SampleData(toolbox_input_file=filename)
    for key, meta_key in (
        ("make", "instrument_make"),
        ("model", "instrument_model"),
        ("firmware", "instrument_firmware"),
        ("serial", "instrument_serial_no"),
    ):
        sample_data.meta[meta_key] = header.get(key, "")
    sample_data.meta["correction"] = header.get("correction", "")
    return sample_data


def _time_series(sample_data, times, columns, samples, channel_map):
    """Dimensions TIME, LATITUDE, LONGITUDE with every mapped channel over them"""
    sample_data.meta["featureType"] = "timeSeries"
    sample_data.dimensions = [
        Dimension("TIME", FieldType.datetime, np.asarray(times, dtype=float)),
        Dimension("LATITUDE", FieldType.numeric, np.array([np.nan])),
        Dimension("LONGITUDE", FieldType.numeric, np.array([np.nan])),
    ]
    for k, column in enumerate(columns):
        if column not in channel_map:
            if column in xr620_dropped:
                log_debug(f"Dropping {column}")
            else:
                log_warning(f"Unknown channel {column} - skipping", max_count=-1)
            continue
        name, scale, comment = channel_map[column]
        sample_data.variables.append(
            Variable(
                name,
                FieldType.numeric,
                [0, 1, 2],
                (samples[:, k] * scale).reshape(-1, 1, 1),
                comment=comment,
            )
        )
    return sample_data


def _pad(data, length):
    return np.concatenate((data, np.full(length - len(data), np.nan)))


def _profile(sample_data, times, columns, samples):
    """Splits the cast at its deepest point into descending and ascending profiles"""
    sample_data.meta["featureType"] = "profile"
    lower = [c.lower() for c in columns]
    depth_column = lower.index("depth") if "depth" in lower else None
    pres_column = lower.index("pres") if "pres" in lower else None
    if depth_column is None and pres_column is None:
        raise ParseError(
            "There is no pressure or depth information in this file to use it in profile mode"
        )

    depth_comment = ""
    if depth_column is not None:
        z_column = depth_column
        depth = samples[:, depth_column]
    else:
        z_column = pres_column
        depth = samples[:, pres_column] - Globals.atmospheric_pressure_dbar
        depth_comment = (
            "Depth computed from absolute pressure measurements to which a nominal "
            f"value for atmospheric pressure ({Globals.atmospheric_pressure_dbar} dbar) "
            "has been subtracted, assuming 1dbar ~= 1m."
        )

    n_data = samples.shape[0]
    if n_data == 0:
        raise ParseError("No samples to build a profile from")
    deepest = int(np.nanargmax(samples[:, z_column]))
    descending = slice(0, deepest + 1)
    ascending = slice(deepest + 1, n_data)
    n_descending = deepest + 1
    n_ascending = n_data - n_descending
    max_z = max(n_descending, n_ascending)

    if n_ascending == 0:
        sample_data.dimensions = [
            Dimension("DEPTH", FieldType.numeric, depth, comment=depth_comment),
            Dimension("INSTANCE", FieldType.numeric, np.array([1.0])),
        ]
        instance_times = [times[0]]
        direction = ["D"]
    else:
        sample_data.dimensions = [
            Dimension("MAXZ", FieldType.numeric, np.arange(1, max_z + 1, dtype=float)),
            Dimension("INSTANCE", FieldType.numeric, np.array([1.0, 2.0])),
        ]
        instance_times = [times[0], times[n_descending]]
        direction = ["D", "A"]
        log_warning(
            f"{sample_data.toolbox_input_file} holds both a descending and an ascending profile"
        )
    n_instance = len(direction)

    def profile_data(column_data):
        if n_ascending == 0:
            return column_data[descending].reshape(-1, 1)
        return np.column_stack(
            (_pad(column_data[descending], max_z), _pad(column_data[ascending], max_z))
        )

    sample_data.variables = [
        Variable(
            "TIME",
            FieldType.datetime,
            [1],
            np.array(instance_times, dtype=float),
            comment="First value over profile measurement",
        ),
        Variable("DIRECTION", FieldType.string, [1], np.array(direction, dtype=object)),
        Variable("LATITUDE", FieldType.numeric, [1], np.full(n_instance, np.nan)),
        Variable("LONGITUDE", FieldType.numeric, [1], np.full(n_instance, np.nan)),
        Variable("BOT_DEPTH", FieldType.numeric, [1], np.full(n_instance, np.nan)),
    ]

    if depth_column is None and n_ascending:
        sample_data.variables.append(
            Variable(
                "DEPTH",
                FieldType.numeric,
                [0, 1],
                profile_data(depth),
                comment=depth_comment,
            )
        )

    for k, column in enumerate(columns):
        if k == depth_column and n_ascending == 0:
            continue
        if column not in xr420_channels:
            log_warning(f"Unknown channel {column} - skipping", max_count=-1)
            continue
        name, scale, comment = xr420_channels[column]
        sample_data.variables.append(
            Variable(
                name,
                FieldType.numeric,
                [0, 1],
                profile_data(samples[:, k] * scale),
                comment=comment,
                coordinates="" if name == "DEPTH" else profile_coordinates,
            )
        )
    return sample_data


def read_xr420(filename, mode="timeSeries"):
    """Reads an XR-420 text export

    Input:
        filename - the file to read
        mode - timeSeries or profile

    Returns:
        SampleData

    Raises:
        ParseError, OSError
    """
    with open(filename, "r", encoding="latin-1") as fi:
        header = read_xr420_header(fi)
        columns, samples, times = read_xr420_data(fi, header, filename)

    sample_data = _xr_sample_data(filename, header)
    sample_data.meta["instrument_sample_interval"] = median_interval(times)
    log_info(f"{filename}: {samples.shape[0]} samples of {columns}")

    if mode == "profile":
        return _profile(sample_data, times, columns, samples)
    if mode != "timeSeries":
        raise ValueError(f"Unknown mode {mode}")
    return _time_series(sample_data, times, columns, samples, xr420_channels)


#
# XR-620
#

xr620_header_exprs = {
    "model": re.compile(r"^Model=+(\S+)$"),
    "firmware": re.compile(r"^Firmware=+(\S+)$"),
    "serial": re.compile(r"^Serial=+(\S+)$"),
    "start_date": re.compile(r"^LoggingStartDate=+(\S+)$"),
    "start_time": re.compile(r"^LoggingStartTime=+(\S+)$"),
    "end_date": re.compile(r"^LoggingEndDate=+(\S+)$"),
    "end_time": re.compile(r"^LoggingEndTime=+(\S+)$"),
    "rate": re.compile(r"^LoggingSamplingPeriod=+(\d+)Hz"),
    "channels": re.compile(r"^NumberOfChannels=+(\d+)"),
    "correction": re.compile(r"^CorrectionToConductivity=+(\d+)"),
    "samples": re.compile(r"^NumberOfSamples=+(\d+)"),
}

xr620_column_marker = "Date & Time"


def read_xr620_header(fi, filename=""):
    """Reads Key=value lines up to the column name line

    Returns (header, column names)
    """
    header = {}
    for line in fi:
        line = line.strip()
        if xr620_column_marker in line:
            break
        for key, expr in xr620_header_exprs.items():
            m = expr.search(line)
            if m is None:
                continue
            header["make"] = "RBR"
            header[key] = m.group(1)
    else:
        raise ParseError(f"{filename}: no '{xr620_column_marker}' column line")

    for key in ("channels", "samples"):
        if key in header:
            header[key] = int(header[key])
    header["interval"] = 1.0 / int(header["rate"]) if int(header.get("rate", 0)) else 0
    for key in ("start", "end"):
        if f"{key}_date" in header and f"{key}_time" in header:
            header[key] = parse_timestamp(
                f"{header[f'{key}_date']} {header[f'{key}_time']}"
            )

    columns = [
        re.sub(r"[- ()&]", "", c) for c in re.split(r" & |\s{2,}", line) if c.strip()
    ]
    return (header, columns)


def read_xr620_data(fi, columns, filename=""):
    """Reads the sample lines - date, time and one value per channel

    Short lines are padded with NaN.
    Returns (time stamps, samples x channels array)
    """
    n_channels = len(columns) - 2
    times = []
    rows = []
    for line_no, line in enumerate(fi):
        tokens = line.split()
        if len(tokens) < 2:
            continue
        times.append(parse_timestamp(f"{tokens[0]} {tokens[1]}"))
        row = np.full(n_channels, np.nan)
        for k, token in enumerate(tokens[2 : 2 + n_channels]):
            try:
                row[k] = float(token)
            except ValueError as exc:
                raise TypeConversionError(
                    f"{filename}: non-numeric sample [{token}] in data line {line_no + 1}"
                ) from exc
        rows.append(row)
    samples = np.array(rows) if rows else np.zeros((0, n_channels))
    return (np.array(times, dtype=float), samples)


def xr620_parse(filename):
    """Reads an XR-620 text export into a time series SampleData

    Raises:
        ParseError, OSError
    """
    with open(filename, "r", encoding="latin-1") as fi:
        header, columns = read_xr620_header(fi, filename)
        times, samples = read_xr620_data(fi, columns, filename)

    sample_data = _xr_sample_data(filename, header)
    if header["interval"] > 0:
        sample_data.meta["instrument_sample_interval"] = header["interval"]
    else:
        sample_data.meta["instrument_sample_interval"] = median_interval(times)
    log_info(f"{filename}: {samples.shape[0]} samples of {columns[2:]}")

    return _time_series(sample_data, times, columns[2:], samples, xr620_channels)


def main(cmdline_args=None):
    """Command line app for reading RBR XR-420/XR-620 files

    Returns:
        0 for success
        1 for failure
    """
    base_opts = BaseOpts.BaseOptions(
        "Command line app for reading RBR XR-420 and XR-620 files",
        additional_arguments={
            "xr_file": BaseOpts.options_t(
                None,
                ("XRParse",),
                ("xr_file",),
                BaseOpts.FullPath,
                {
                    "help": "RBR text export to read",
                    "action": BaseOpts.FullPathAction,
                },
            ),
        },
        alt_cmdline=cmdline_args,
        calling_module="XRParse",
    )
    BaseLogger(base_opts)  # initializes BaseLog

    processing_start_time = time.time()
    try:
        if base_opts.xr_model == "XR620":
            sample_data = xr620_parse(base_opts.xr_file)
        else:
            sample_data = read_xr420(base_opts.xr_file, base_opts.xr_mode)
    except Exception:
        log_error(f"Could not read {base_opts.xr_file}", "exc")
        return 1

    print_summary(sample_data)
    log_info("Run time %f seconds" % (time.time() - processing_start_time))
    return 0


if __name__ == "__main__":
    retval = 1

    try:
        retval = main()
    except SystemExit:
        pass
    except Exception:
        log_critical("Unhandled exception in main -- exiting")

    sys.exit(retval)
