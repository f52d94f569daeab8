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

import pytest
import testutils

import FieldMap
from Globals import FieldType
from ParseErrors import ConfigError, FileError, MissingColumnError, QCExpressionError

field_map_text = """
    # A comment, ignored
    % Another comment
    TIME, Date_M, , DT

    short, line
    LAYER, Layer, , N
    Sv_mean, Sv_mean, TIME LAYER, N, where(Sv_mean > -999, QC_GOOD, QC_BAD)
    vessel, Vessel, TIME, S
"""


@pytest.fixture
def field_map_file(tmp_path):
    return testutils.write_file(tmp_path / "echoview_config.txt", field_map_text)


def test_load_field_map(field_map_file, caplog):
    field_map = FieldMap.load_field_map(str(field_map_file))
    testutils.check_log(caplog)

    assert [fd.name for fd in field_map] == ["TIME", "LAYER", "Sv_mean", "vessel"]
    time_fd, layer_fd, sv_fd, vessel_fd = field_map

    assert time_fd.column_name == "Date_M"
    assert time_fd.type == FieldType.datetime
    assert time_fd.is_dimension
    assert time_fd.qc is None

    assert layer_fd.type == FieldType.numeric

    assert not sv_fd.is_dimension
    assert sv_fd.dimension_group == ("TIME", "LAYER")
    # commas inside the expression survive, fields are trimmed
    assert sv_fd.qc == "where(Sv_mean > -999,QC_GOOD,QC_BAD)"

    assert vessel_fd.type == FieldType.string


def test_descriptor_is_immutable(field_map_file):
    field_map = FieldMap.load_field_map(str(field_map_file))
    with pytest.raises(AttributeError):
        field_map[0].name = "OTHER"


def test_missing_field_map(tmp_path):
    with pytest.raises(FileError):
        FieldMap.load_field_map(str(tmp_path / "no_such_file.txt"))


@pytest.mark.parametrize(
    "text,message",
    (
        ("TIME, Time, , X\n", "Unknown type"),
        ("TIME, Time, , N\nDEPTH, Depth, TIME LAYER, N\n", "not a dimension"),
        ("TIME, Time, , N\nTIME, Time2, , N\n", "more than once"),
    ),
)
def test_bad_field_map(tmp_path, text, message):
    config = testutils.write_file(tmp_path / "bad_config.txt", text)
    with pytest.raises(ConfigError, match=message):
        FieldMap.load_field_map(str(config))


def test_bad_qc_expression(tmp_path):
    config = testutils.write_file(
        tmp_path / "bad_qc.txt", "TIME, Time, , N, TIME.__class__\n"
    )
    with pytest.raises(QCExpressionError):
        FieldMap.load_field_map(str(config))


def test_find_columns(field_map_file, caplog):
    field_map = FieldMap.load_field_map(str(field_map_file))
    header = "Vessel, Date_M, Time_M, Layer, Sv_mean, Layer\n"
    resolved = FieldMap.find_columns(field_map, header)
    testutils.check_log(caplog)

    assert [rc.name for rc in resolved] == ["TIME", "LAYER", "Sv_mean", "vessel"]
    # last match wins for the duplicated Layer column
    assert [rc.column for rc in resolved] == [1, 5, 4, 0]
    assert resolved[0].type == FieldType.datetime


def test_find_columns_non_ascii_header(field_map_file):
    field_map = FieldMap.load_field_map(str(field_map_file))
    header = "Vessel,Date_M,Time_M,Layer°,Sv_mean\n"
    # the degree sign becomes a blank which is then trimmed
    resolved = FieldMap.find_columns(field_map, header)
    assert resolved[1].column == 3


def test_find_columns_missing(field_map_file):
    field_map = FieldMap.load_field_map(str(field_map_file))
    with pytest.raises(MissingColumnError) as exc_info:
        FieldMap.find_columns(field_map, "Vessel,Date_M,Time_M,Layer\n")
    assert exc_info.value.column_name == "Sv_mean"
    assert "Could not locate column Sv_mean" in str(exc_info.value)
