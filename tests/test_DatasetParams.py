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

import pathlib

import pytest
import testutils
import yaml

import DatasetParams
from ParseErrors import ConfigError


@pytest.fixture
def raw_file(tmp_path):
    return str(testutils.write_file(tmp_path / "SBE19_1234.cnv", "raw data\n"))


def test_parameter_file_type():
    assert DatasetParams.parameter_file_type("imosSpikeQC") == "pqc"
    assert DatasetParams.parameter_file_type("depthPP") == "ppp"
    assert DatasetParams.parameter_file_type("depthpp") == "ppp"
    assert DatasetParams.parameter_file_type("exportNetCDF") is None


def test_defaults(raw_file):
    assert DatasetParams.read_dataset_parameter(raw_file, "imosSpikeQC", "window", 5) == 5
    assert DatasetParams.read_dataset_parameter(raw_file, "export", "window", 3) == 3


def test_round_trip(raw_file, caplog):
    DatasetParams.write_dataset_parameter(raw_file, "imosSpikeQC", "window", 7)
    DatasetParams.write_dataset_parameter(raw_file, "imosSpikeQC", "method", "hampel")
    DatasetParams.write_dataset_parameter(raw_file, "depthPP", "same_family", True)
    testutils.check_log(caplog)

    assert DatasetParams.read_dataset_parameter(raw_file, "imosSpikeQC", "window", 5) == 7
    assert DatasetParams.read_dataset_parameter(raw_file, "depthPP", "same_family", False)
    assert DatasetParams.read_dataset_parameter(raw_file, "imosSpikeQC", "*", None) == (
        ["window", "method"],
        [7, "hampel"],
    )
    # an unrelated routine falls back to the default
    assert DatasetParams.read_dataset_parameter(raw_file, "otherQC", "x", 1) == 1

    with open(raw_file + ".pqc") as fi:
        assert yaml.safe_load(fi) == {"imosSpikeQC": {"window": 7, "method": "hampel"}}


def test_unknown_parameter(raw_file):
    DatasetParams.write_dataset_parameter(raw_file, "imosSpikeQC", "window", 7)
    with pytest.raises(KeyError):
        DatasetParams.read_dataset_parameter(raw_file, "imosSpikeQC", "threshold", 1)


def test_legacy_file_moved(tmp_path, raw_file):
    legacy = testutils.write_file(tmp_path / "SBE19_1234.ppp", "depthPP:\n  offset: 1.5\n")
    assert DatasetParams.read_dataset_parameter(raw_file, "depthPP", "offset", 0) == 1.5
    assert not legacy.exists()
    assert (tmp_path / "SBE19_1234.cnv.ppp").exists()


def test_write_non_routine(raw_file):
    with pytest.raises(ValueError):
        DatasetParams.write_dataset_parameter(raw_file, "export", "x", 1)


def test_unreadable_file(raw_file):
    testutils.write_file(pathlib.Path(raw_file + ".pqc"), "- not a mapping\n")
    with pytest.raises(ConfigError):
        DatasetParams.read_dataset_parameter(raw_file, "imosSpikeQC", "window", 5)