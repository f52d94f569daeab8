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

import collections

import BaseLog


def test_log_functions(caplog):
    BaseLog.log_warning("a warning")
    BaseLog.log_error("an error")
    warning, error = caplog.records[-2:]
    assert warning.levelname == "WARNING"
    # caller module and line number are prepended
    assert warning.getMessage().startswith("test_BaseLog.py(")
    assert warning.getMessage().endswith("): a warning")
    assert error.levelname == "ERROR"
    assert error.getMessage().endswith("): an error")


def test_log_exc(caplog):
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        BaseLog.log_error("failed", "exc")
    assert "RuntimeError: boom" in caplog.records[-1].getMessage()


def test_max_count():
    counts = collections.defaultdict(int)
    results = [BaseLog._over_max_count(counts, "mod(1): msg", 2) for _ in range(3)]
    assert results[0] == (False, "mod(1): msg")
    assert results[1] == (False, "mod(1): msg (Max message count exceeded)")
    assert results[2][0] is True
