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

"""Quality control flags and the field map QC expression evaluator

QC expressions are parsed with the ast module and interpreted by a small
walker.  Only arithmetic, comparisons, boolean combinators, a fixed set of
functions and the names of the dimensions and variables of the sample data
being checked are allowed.  Expressions are never handed to eval().
"""

import ast
import operator
import types

import numpy as np

from BaseLog import log_debug, log_info
from ParseErrors import QCExpressionError

## For QC indications
# flags used by ARGO
QC_NO_CHANGE = 0  # no QC performed
QC_GOOD = 1  # ok
QC_PROBABLY_GOOD = 2  # ...
QC_PROBABLY_BAD = 3  # potentially correctable
QC_BAD = 4  # untrustworthy and irreperable
QC_CHANGED = 5  # explicit manual change
QC_UNSAMPLED = 6  # explicitly not sampled (vs. expected but missing)
QC_INTERPOLATED = 8  # interpolated value
QC_MISSING = 9  # value missing -- instrument timed out

qc_name_d = {
    QC_NO_CHANGE: "QC_NO_CHANGE",
    QC_GOOD: "QC_GOOD",
    QC_PROBABLY_GOOD: "QC_PROBABLY_GOOD",
    QC_PROBABLY_BAD: "QC_PROBABLY_BAD",
    QC_BAD: "QC_BAD",
    QC_CHANGED: "QC_CHANGED",
    QC_UNSAMPLED: "QC_UNSAMPLED",
    QC_INTERPOLATED: "QC_INTERPOLATED",
    QC_MISSING: "QC_MISSING",
}

qc_rev_name_d = dict((v, k) for k, v in qc_name_d.items())

# Initialize QC_flag_meanings and QC_flag_values for metadata use
sorted_QC_keys = np.sort(list(qc_name_d.keys()))
QC_flag_meanings = " ".join(qc_name_d[key] for key in sorted_QC_keys)
QC_flag_values = np.array(sorted_QC_keys, dtype=np.int8)


def qc_flag_attributes(flags):
    """Metadata describing a flags array

    Integer flags are assumed to be ARGO QC codes; boolean flags mark the
    points for which the expression held.
    """
    flags = np.asarray(flags)
    if flags.dtype == bool:
        return {
            "flag_values": np.array([0, 1], dtype=np.int8),
            "flag_meanings": "expression_false expression_true",
        }
    if np.issubdtype(flags.dtype, np.integer):
        return {"flag_values": QC_flag_values, "flag_meanings": QC_flag_meanings}
    return {}


_binary_ops = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.Pow: operator.pow,
    ast.BitAnd: np.logical_and,
    ast.BitOr: np.logical_or,
    ast.BitXor: np.logical_xor,
}

_unary_ops = {
    ast.USub: operator.neg,
    ast.UAdd: operator.pos,
    ast.Not: np.logical_not,
    ast.Invert: np.logical_not,
}

_compare_ops = {
    ast.Lt: operator.lt,
    ast.LtE: operator.le,
    ast.Gt: operator.gt,
    ast.GtE: operator.ge,
    ast.Eq: operator.eq,
    ast.NotEq: operator.ne,
}


def _reduce_min(*args):
    return np.nanmin(args[0]) if len(args) == 1 else np.fmin(*args)


def _reduce_max(*args):
    return np.nanmax(args[0]) if len(args) == 1 else np.fmax(*args)


# name: (function, min args, max args)
qc_functions = {
    "isnan": (np.isnan, 1, 1),
    "isfinite": (np.isfinite, 1, 1),
    "abs": (np.abs, 1, 1),
    "min": (_reduce_min, 1, 2),
    "max": (_reduce_max, 1, 2),
    "logical_and": (np.logical_and, 2, 2),
    "logical_or": (np.logical_or, 2, 2),
    "logical_not": (np.logical_not, 1, 1),
    "where": (np.where, 3, 3),
}

qc_constants = {"nan": np.nan, "inf": np.inf} | {
    name: np.int8(value) for value, name in qc_name_d.items()
}


class QCExpression:
    """A parsed quality control expression

    Raises QCExpressionError on construction if the text is not valid in the
    restricted grammar.
    """

    def __init__(self, text):
        self.text = text
        try:
            tree = ast.parse(text.strip(), mode="eval")
        except SyntaxError as exc:
            raise QCExpressionError(f"Could not parse QC expression [{text}]") from exc
        self.body = tree.body
        self.names = set()
        self._check(self.body)

    def __str__(self):
        return self.text

    def _check(self, node):
        """Walk the tree, rejecting anything outside the grammar"""
        if isinstance(node, ast.Constant):
            if isinstance(node.value, (bool, int, float, str)):
                return
        elif isinstance(node, ast.Name):
            # function names are only valid as the target of a call
            if node.id not in qc_functions:
                if node.id not in qc_constants:
                    self.names.add(node.id)
                return
        elif isinstance(node, ast.BinOp) and type(node.op) in _binary_ops:
            self._check(node.left)
            self._check(node.right)
            return
        elif isinstance(node, ast.UnaryOp) and type(node.op) in _unary_ops:
            self._check(node.operand)
            return
        elif isinstance(node, ast.BoolOp):
            for value in node.values:
                self._check(value)
            return
        elif isinstance(node, ast.Compare):
            if all(type(op) in _compare_ops for op in node.ops):
                self._check(node.left)
                for comparator in node.comparators:
                    self._check(comparator)
                return
        elif isinstance(node, ast.Call):
            if (
                isinstance(node.func, ast.Name)
                and node.func.id in qc_functions
                and not node.keywords
                and not any(isinstance(a, ast.Starred) for a in node.args)
            ):
                _, min_args, max_args = qc_functions[node.func.id]
                if not min_args <= len(node.args) <= max_args:
                    raise QCExpressionError(
                        f"{node.func.id} takes {min_args}..{max_args} arguments in [{self.text}]"
                    )
                for arg in node.args:
                    self._check(arg)
                return
        raise QCExpressionError(
            f"{type(node).__name__} not allowed in QC expression [{self.text}]"
        )

    def evaluate(self, context):
        """Evaluate against a name -> data mapping"""
        missing = self.names - set(context.keys())
        if missing:
            raise QCExpressionError(
                f"Unknown name(s) {sorted(missing)} in QC expression [{self.text}]"
            )
        try:
            with np.errstate(invalid="ignore", divide="ignore", over="ignore"):
                return self._eval(self.body, context)
        except QCExpressionError:
            raise
        except Exception as exc:
            raise QCExpressionError(
                f"Failed to evaluate QC expression [{self.text}]: {exc}"
            ) from exc

    def _eval(self, node, context):
        if isinstance(node, ast.Constant):
            if isinstance(node.value, bool) or not isinstance(node.value, int):
                return node.value
            # numpy ints - no arbitrary precision arithmetic
            return np.int64(node.value)
        if isinstance(node, ast.Name):
            if node.id in context:
                return context[node.id]
            return qc_constants[node.id]
        if isinstance(node, ast.BinOp):
            return _binary_ops[type(node.op)](
                self._eval(node.left, context), self._eval(node.right, context)
            )
        if isinstance(node, ast.UnaryOp):
            return _unary_ops[type(node.op)](self._eval(node.operand, context))
        if isinstance(node, ast.BoolOp):
            combine = np.logical_and if isinstance(node.op, ast.And) else np.logical_or
            result = self._eval(node.values[0], context)
            for value in node.values[1:]:
                result = combine(result, self._eval(value, context))
            return result
        if isinstance(node, ast.Compare):
            left = self._eval(node.left, context)
            result = True
            for op, comparator in zip(node.ops, node.comparators):
                right = self._eval(comparator, context)
                result = np.logical_and(result, _compare_ops[type(op)](left, right))
                left = right
            return result
        if isinstance(node, ast.Call):
            func, _, _ = qc_functions[node.func.id]
            return func(*[self._eval(arg, context) for arg in node.args])
        raise QCExpressionError(f"Unexpected {type(node).__name__} in [{self.text}]")


def _read_only(data):
    if isinstance(data, np.ndarray):
        data = data.view()
        data.flags.writeable = False
    return data


def qc_context(sample_data):
    """Read-only mapping of every dimension, variable and scalar attribute name to its data"""
    context = {}
    for name, value in sample_data.attributes.items():
        context[name] = value
    for dim in sample_data.dimensions:
        context[dim.name] = _read_only(dim.data)
    for var in sample_data.variables:
        context[var.name] = _read_only(var.data)
    return types.MappingProxyType(context)


def eval_qc(sample_data):
    """Evaluates each field's QC expression over the assembled sample data

    Sets the flags member of every dimension and variable with an expression
    to the result, broadcast to the shape of the field's data.

    Raises:
        QCExpressionError
    """
    fields = [f for f in sample_data.dimensions + sample_data.variables if f.qc]
    if not fields:
        return

    context = qc_context(sample_data)
    for field in fields:
        expression = QCExpression(field.qc)
        result = np.asarray(expression.evaluate(context))
        try:
            field.flags = np.broadcast_to(result, field.data.shape).copy()
        except ValueError as exc:
            raise QCExpressionError(
                f"QC expression [{field.qc}] for {field.name} has shape {result.shape}, data has {field.data.shape}"
            ) from exc
        log_debug(f"{field.name} flags from [{field.qc}]")
    log_info(f"Applied QC expressions to {len(fields)} field(s)")
