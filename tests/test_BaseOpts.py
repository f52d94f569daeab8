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

import io
import os

import pytest
import testutils

import BaseOpts


def test_defaults():
    base_opts = BaseOpts.BaseOptions(
        "test", alt_cmdline=[], calling_module="EchoviewParse"
    )
    assert base_opts.echoview_config == ""
    assert base_opts.platform == ""
    assert base_opts.debug is False
    assert base_opts.config_file_name is None
    # options of other modules are not added
    assert not hasattr(base_opts, "xr_mode")


def test_command_line():
    base_opts = BaseOpts.BaseOptions(
        "test",
        alt_cmdline="--debug --platform VNAA --platform_dir ~/platforms",
        calling_module="EchoviewParse",
    )
    assert base_opts.debug is True
    assert base_opts.platform == "VNAA"
    assert base_opts.platform_dir == os.path.join(
        os.path.expanduser("~"), "platforms/"
    )


def test_config_file_trumps_command_line(tmp_path):
    conf = testutils.write_file(
        tmp_path / "test.conf",
        """
        [base]
        verbose = 1
        [xr]
        xr_mode = profile
        """,
    )
    base_opts = BaseOpts.BaseOptions(
        "test",
        alt_cmdline=["-c", str(conf), "--xr_mode", "timeSeries"],
        calling_module="XRParse",
    )
    assert base_opts.verbose is True
    assert base_opts.xr_mode == "profile"
    assert base_opts.xr_model == "XR420"
    assert base_opts.config_file_name == str(conf)


def test_config_file_bad_choice(tmp_path):
    conf = testutils.write_file(tmp_path / "test.conf", "[xr]\nxr_model = XR999\n")
    with pytest.raises(ValueError, match="not a valid choice"):
        BaseOpts.BaseOptions("test", alt_cmdline=["-c", str(conf)], calling_module="XRParse")


def test_missing_config_file(tmp_path):
    base_opts = BaseOpts.BaseOptions(
        "test",
        alt_cmdline=["-c", str(tmp_path / "missing.conf")],
        calling_module="EchoviewParse",
    )
    assert base_opts.config_file_not_found


def test_bad_command_line_choice():
    with pytest.raises(SystemExit):
        BaseOpts.BaseOptions(
            "test", alt_cmdline="--xr_mode sideways", calling_module="XRParse"
        )


def test_generate_sample_conf_file():
    fo = io.StringIO()
    BaseOpts.generate_sample_conf_file(BaseOpts.global_options_dict, "EchoviewParse", fo)
    text = fo.getvalue()
    assert "[base]" in text
    assert "[echoview]" in text
    assert "#platform_dir = <path_to_directory>" in text
    assert "#debug = 0" in text
    assert "xr_mode" not in text


def test_full_path():
    assert BaseOpts.FullPath("") == ""
    assert BaseOpts.FullPath(None) is None
    assert BaseOpts.FullPath("~/x") == os.path.join(os.path.expanduser("~"), "x")
    assert BaseOpts.FullPathTrailingSlash("/tmp") == "/tmp/"


def test_options_t_validation():
    with pytest.raises(ValueError, match="not a tuple"):
        BaseOpts.options_t("", None, "--name", str, {})
    with pytest.raises(ValueError, match="not a choice"):
        BaseOpts.options_t("up", None, ("--dir",), str, {"choices": ["down"]})
    opt = BaseOpts.options_t("down", ("XRParse",), ("--dir",), str, {"choices": ["down"]})
    assert opt.group == {"XRParse"}
