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

import numpy as np
import pytest

import QC
from Globals import FieldType
from ParseErrors import QCExpressionError
from SampleData import Dimension, SampleData, Variable


@pytest.mark.parametrize(
    "text",
    (
        "TIME.__class__",
        "TIME[0]",
        "lambda x: x",
        "open('/etc/passwd')",
        "__import__('os')",
        "isnan",
        "isnan(TIME, DEPTH)",
        "where(TIME > 0, 1)",
        "TIME if DEPTH else 0",
        "[TIME]",
        "TIME @ DEPTH",
        "TIME in DEPTH",
        "isnan(x=TIME)",
        "TIME = 1",
        "",
    ),
)
def test_rejected_expressions(text):
    with pytest.raises(QCExpressionError):
        QC.QCExpression(text)


def test_names():
    expression = QC.QCExpression("where(isnan(Sv) | (DEPTH > max_depth), QC_BAD, QC_GOOD)")
    assert expression.names == {"Sv", "DEPTH", "max_depth"}
    assert str(expression) == "where(isnan(Sv) | (DEPTH > max_depth), QC_BAD, QC_GOOD)"


@pytest.mark.parametrize(
    "text,expected",
    (
        ("A > 1", [False, True, True]),
        ("(A > 1) & (B < 25)", [False, True, False]),
        ("A > 1 and B < 25", [False, True, False]),
        ("A == 1 or B == 30", [True, False, True]),
        ("not A > 1", [True, False, False]),
        ("~(A > 1)", [True, False, False]),
        ("(A > 1) ^ (B < 25)", [True, False, True]),
        ("1 < A <= 3", [False, True, True]),
        ("A * 10 == B", [True, True, True]),
        ("-A + 4 > 1", [True, True, False]),
        ("A ** 2 // 2 % 3 == 2", [False, True, False]),
        ("isfinite(C)", [True, False, False]),
        ("isnan(C)", [False, True, False]),
        ("abs(C) < inf", [True, False, False]),
        ("logical_not(logical_or(A == 1, logical_and(A == 2, B == 20)))", [False, False, True]),
        ("max(A) == 3", [True, True, True]),
        ("min(A, 2) == A", [True, True, False]),
        ("True", [True, True, True]),
    ),
)
def test_evaluate(text, expected):
    context = {
        "A": np.array([1.0, 2.0, 3.0]),
        "B": np.array([10.0, 20.0, 30.0]),
        "C": np.array([1.0, np.nan, np.inf]),
    }
    result = QC.QCExpression(text).evaluate(context)
    np.testing.assert_array_equal(np.broadcast_to(result, (3,)), expected)


def test_evaluate_flag_codes():
    result = QC.QCExpression("where(A > 1, QC_GOOD, QC_BAD)").evaluate(
        {"A": np.array([1.0, 2.0])}
    )
    np.testing.assert_array_equal(result, [QC.QC_BAD, QC.QC_GOOD])
    assert np.issubdtype(result.dtype, np.integer)


def test_evaluate_unknown_name():
    with pytest.raises(QCExpressionError, match="Unknown name"):
        QC.QCExpression("A > B").evaluate({"A": np.arange(3)})


def test_evaluate_failure():
    with pytest.raises(QCExpressionError, match="Failed to evaluate"):
        QC.QCExpression("A + B").evaluate({"A": np.arange(3), "B": np.arange(4)})


def make_sample_data(qc_time=None, qc_sv=None):
    return SampleData(
        toolbox_input_file="test.csv",
        dimensions=[
            Dimension("TIME", FieldType.datetime, np.array([0.0, 60.0]), qc=qc_time),
            Dimension("LAYER", FieldType.numeric, np.array([1.0, 2.0])),
        ],
        variables=[
            Variable(
                "Sv",
                FieldType.numeric,
                [0, 1],
                np.array([[-70.0, np.nan], [-999.0, -60.0]]),
                qc=qc_sv,
            ),
        ],
        attributes={"min_sv": -100.0},
    )


def test_eval_qc():
    sample_data = make_sample_data(
        qc_time="TIME >= 0",
        qc_sv="where(isnan(Sv) | (Sv < min_sv), QC_BAD, QC_GOOD)",
    )
    QC.eval_qc(sample_data)

    time_dim = sample_data.get_dimension("TIME")
    np.testing.assert_array_equal(time_dim.flags, [True, True])
    assert sample_data.get_dimension("LAYER").flags is None

    sv = sample_data.get_variable("Sv")
    np.testing.assert_array_equal(
        sv.flags, [[QC.QC_GOOD, QC.QC_BAD], [QC.QC_BAD, QC.QC_GOOD]]
    )
    # data is untouched
    assert sv.data[1, 0] == -999.0


def test_eval_qc_broadcasts():
    sample_data = make_sample_data(qc_sv="TIME > 30")
    QC.eval_qc(sample_data)
    sv = sample_data.get_variable("Sv")
    assert sv.flags.shape == (2, 2)
    # TIME broadcasts along the last axis
    np.testing.assert_array_equal(sv.flags, [[False, True], [False, True]])


def test_eval_qc_shape_mismatch():
    sample_data = make_sample_data(qc_time="Sv > 0")
    with pytest.raises(QCExpressionError, match="shape"):
        QC.eval_qc(sample_data)


def test_eval_qc_no_expressions():
    sample_data = make_sample_data()
    QC.eval_qc(sample_data)
    assert all(f.flags is None for f in sample_data.dimensions + sample_data.variables)


def test_qc_context_read_only():
    sample_data = make_sample_data()
    context = QC.qc_context(sample_data)
    with pytest.raises(TypeError):
        context["TIME"] = None
    with pytest.raises(ValueError):
        context["TIME"][0] = 1.0
    assert context["min_sv"] == -100.0


def test_qc_flag_attributes():
    assert QC.qc_flag_attributes(np.array([True]))["flag_meanings"] == (
        "expression_false expression_true"
    )
    atts = QC.qc_flag_attributes(np.array([1], dtype=np.int8))
    np.testing.assert_array_equal(atts["flag_values"], QC.QC_flag_values)
    assert atts["flag_meanings"].split()[1] == "QC_GOOD"
    assert QC.qc_flag_attributes(np.array([1.5])) == {}
