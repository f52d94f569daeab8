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

"""EchoviewParse.py: parses an Echoview results CSV file into sample data

This is an almost generic CSV parser.  The fields to create, and the CSV
columns that populate them, are described by a field map file
(echoview_config.txt next to this module unless another is configured).
See FieldMap.py for the field map format and CSVFields.py for the
limitations on the CSV contents.

Processing:
  - global attributes from voyage/vessel/site/platform attribute files
  - two pass read of the CSV into dimensions and variables
  - singleton dimensions and variables become global attributes
  - field map QC expressions are evaluated
  - time and geospatial coverage attributes are set
"""

import os
import sys
import time

import numpy as np

import Attributes
import BaseOpts
import Globals
from BaseLog import BaseLogger, log_critical, log_debug, log_error, log_info
from Bounds import get_bounds
from CoordinateIndexer import index_csv
from FieldMap import load_field_map
from QC import eval_qc
from SampleData import SampleData, collapse_singletons, print_summary

# attribute name -> meta key, used for output file naming
meta_attributes = {
    "vessel_name": "site_name",
    "frequency": "depth",
    "make": "instrument_make",
    "sounder": "instrument_model",
    "channel": "instrument_serial_no",
}


def default_field_map():
    return os.path.join(
        os.path.dirname(os.path.abspath(__file__)), Globals.default_field_map
    )


def new_sample_data(filename):
    """SampleData populated with the echo sounder defaults"""
    sample_data = SampleData(toolbox_input_file=filename)
    sample_data.meta.update(
        {
            "instrument_make": Globals.echoview_instrument_make,
            "instrument_model": Globals.echoview_instrument_model,
            "instrument_serial_no": "",
            "instrument_sample_interval": np.nan,
            "featureType": "",
            "level": Globals.echoview_level,
        }
    )
    sample_data.attributes["site_code"] = Globals.echoview_site_code
    sample_data.attributes["EV_csv_file"] = os.path.basename(filename)
    return sample_data


def populate_meta(sample_data):
    """Copies the attributes used for file naming into meta"""
    for att, key in meta_attributes.items():
        if att in sample_data.attributes:
            sample_data.meta[key] = sample_data.attributes[att]
    return sample_data


def echoview_parse(filename, platform=None, config=None, platform_dir=None):
    """Parses an Echoview results CSV file

    Input:
        filename - CSV file exported by Echoview
        platform - platform code, selects <platform>_attributes.txt
        config - field map file
        platform_dir - directory holding the platform attribute files

    Returns:
        SampleData

    Raises:
        ConfigError, MissingColumnError, ConsistencyError,
        TypeConversionError, QCExpressionError, OSError
    """
    sample_data = new_sample_data(filename)

    for attribute_file in Attributes.attribute_files(filename, platform, platform_dir):
        Attributes.get_attributes(sample_data, attribute_file)

    if not config or not os.path.exists(config):
        if config:
            log_info(f"Field map {config} not found - using the default")
        config = default_field_map()
    field_map = load_field_map(config)

    sample_data.dimensions, sample_data.variables = index_csv(filename, field_map)

    collapse_singletons(sample_data)
    eval_qc(sample_data)
    get_bounds(sample_data)
    populate_meta(sample_data)

    log_debug(
        f"{filename}: dimensions {[d.name for d in sample_data.dimensions]}, "
        f"variables {[v.name for v in sample_data.variables]}"
    )
    return sample_data


def main(cmdline_args=None):
    """Command line app for parsing an Echoview CSV file

    Returns:
        0 for success
        1 for failure
    """
    base_opts = BaseOpts.BaseOptions(
        "Command line app for parsing Echoview CSV files",
        additional_arguments={
            "csv_file": BaseOpts.options_t(
                None,
                ("EchoviewParse",),
                ("csv_file",),
                BaseOpts.FullPath,
                {
                    "help": "Echoview CSV file to parse",
                    "action": BaseOpts.FullPathAction,
                },
            ),
        },
        alt_cmdline=cmdline_args,
        calling_module="EchoviewParse",
    )
    BaseLogger(base_opts)  # initializes BaseLog

    processing_start_time = time.time()
    log_info(
        "Started processing "
        + time.strftime("%H:%M:%S %d %b %Y %Z", time.gmtime(processing_start_time))
    )
    log_info(f"Config name = {base_opts.config_file_name}")

    try:
        sample_data = echoview_parse(
            base_opts.csv_file,
            platform=base_opts.platform,
            config=base_opts.echoview_config,
            platform_dir=base_opts.platform_dir,
        )
    except Exception:
        log_error(f"Could not parse {base_opts.csv_file}", "exc")
        return 1

    print_summary(sample_data)
    log_info(
        "Finished processing "
        + time.strftime("%H:%M:%S %d %b %Y %Z", time.gmtime(time.time()))
    )
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
