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

"""
  Common set of options for all instrument parsers
  Default values supplemented by option processing, both config file and command line
"""

import argparse
import configparser
import copy
import dataclasses
import inspect
import os
import sys
import typing

import Globals


@dataclasses.dataclass
class options_t:
    """One entry in the options table

    group is the set of module names the option applies to (None for all).
    kwargs are handed to argparse, less these extras:
        section:str - config file section (default "base")
        option_group:str - argparse option group for help output
    """

    default_val: typing.Any
    group: set | None
    args: tuple
    var_type: typing.Any
    kwargs: dict

    def __post_init__(self):
        if not isinstance(self.args, tuple):
            raise ValueError("args is not a tuple")
        if self.group is not None and not isinstance(self.group, set):
            self.group = set(self.group)
        if not isinstance(self.kwargs, dict):
            raise ValueError("kwargs is not a dict")
        if (
            "choices" in self.kwargs
            and self.default_val is not None
            and self.default_val not in self.kwargs["choices"]
        ):
            raise ValueError(f"default {self.default_val} for {self.args} is not a choice")


def FullPath(x):
    """Expand user- and relative-paths"""
    # An unset nargs=? argument arrives here as its default - leave it be
    if x == "" or x is None:
        return x

    if isinstance(x, list):
        return list(map(lambda y: os.path.abspath(os.path.expanduser(y)), x))
    else:
        return os.path.abspath(os.path.expanduser(x))


def FullPathTrailingSlash(x):
    """Expand user- and relative-paths and include the trailing slash"""
    if x == "" or x is None:
        return x

    return FullPath(x) + "/"


class FullPathAction(argparse.Action):
    """Expand user- and relative-paths"""

    def __call__(self, parser, namespace, values, option_string=None):
        if values is not None:
            setattr(namespace, self.dest, FullPath(values))
        else:
            setattr(namespace, self.dest, values)


class FullPathTrailingSlashAction(argparse.Action):
    """Expand user- and relative-paths and include the trailing slash"""

    def __call__(self, parser, namespace, values, option_string=None):
        if values is not None:
            setattr(namespace, self.dest, FullPathTrailingSlash(values))
        else:
            setattr(namespace, self.dest, values)


def generate_sample_conf_file(options_dict, calling_module, fo=sys.stdout):
    """Generates a sample .conf file"""
    sort_options_dict = dict(
        sorted(
            options_dict.items(),
            key=lambda x: x[1].kwargs.get("section", ""),
        )
    )

    seen_sections = set()

    print(f"#\n# Sample conf file for {calling_module}.py\n#", file=fo)
    print(f"# Generated with python {calling_module}.py --generate_sample_conf\n#", file=fo)
    print("[base]", file=fo)

    for opt_n, opt_v in sort_options_dict.items():
        if opt_n in ("config_file_name", "generate_sample_conf"):
            continue
        if not opt_v.args[0].startswith("-"):
            # positional arguments only come from the command line
            continue
        if opt_v.group is None or calling_module in opt_v.group:
            section_name = opt_v.kwargs.get("section", "")
            if section_name not in seen_sections and section_name:
                print(f"#\n[{section_name}]", file=fo)
                seen_sections.add(section_name)
            print(f"#\n# {opt_v.kwargs['help']}", file=fo)
            print(f"#{opt_n} = ", end="", file=fo)
            if opt_v.var_type is bool:
                print(f"{int(opt_v.default_val)}", file=fo)
            elif opt_v.var_type is FullPath:
                print("<path_to_file>", file=fo)
            elif opt_v.var_type is FullPathTrailingSlash:
                print("<path_to_directory>", file=fo)
            else:
                print(f"{opt_v.default_val}", file=fo)


global_options_dict = {
    "generate_sample_conf": options_t(
        False,
        None,
        ("--generate_sample_conf",),
        bool,
        {
            "help": "Generates a sample conf file to stdout",
            "action": "store_true",
        },
    ),
    "config_file_name": options_t(
        None,  # Okay to be None - this is never added to the options object, just used by the argparse
        None,
        ("--config", "-c"),
        FullPath,
        {"help": "script configuration file", "action": FullPathAction},
    ),
    "base_log": options_t(
        "",
        None,
        ("--base_log",),
        FullPath,
        {
            "help": "log file, records all levels of notifications",
            "action": FullPathAction,
        },
    ),
    "debug": options_t(
        False,
        None,
        ("--debug",),
        bool,
        {
            "action": "store_true",
            "help": "log/display debug messages",
        },
    ),
    "verbose": options_t(
        False,
        None,
        (
            "--verbose",
            "-v",
        ),
        bool,
        {
            "action": "store_true",
            "help": "print status messages to stdout",
        },
    ),
    "echoview_config": options_t(
        "",
        ("EchoviewParse",),
        ("--echoview_config",),
        FullPath,
        {
            "help": f"Field map describing the CSV columns to read (default {Globals.default_field_map} next to EchoviewParse.py)",
            "section": "echoview",
            "action": FullPathAction,
        },
    ),
    "platform": options_t(
        "",
        ("EchoviewParse",),
        ("--platform",),
        str,
        {
            "help": "Platform code - selects <platform>_attributes.txt",
            "section": "echoview",
        },
    ),
    "platform_dir": options_t(
        "",
        ("EchoviewParse",),
        ("--platform_dir",),
        FullPathTrailingSlash,
        {
            "help": "Directory holding the platform attribute files",
            "section": "echoview",
            "action": FullPathTrailingSlashAction,
        },
    ),
    "xr_mode": options_t(
        "timeSeries",
        ("XRParse",),
        ("--xr_mode",),
        str,
        {
            "help": "XR-420 processing mode",
            "section": "xr",
            "choices": ["timeSeries", "profile"],
        },
    ),
    "xr_model": options_t(
        "XR420",
        ("XRParse",),
        ("--xr_model",),
        str,
        {
            "help": "RBR logger model that wrote the file",
            "section": "xr",
            "choices": ["XR420", "XR620"],
        },
    ),
}

option_group_description = {
    "required named arguments": None,
}


class CustomFormatter(
    argparse.ArgumentDefaultsHelpFormatter, argparse.RawDescriptionHelpFormatter
):
    """Allow for multiple formatters for help"""


class BaseOptions:
    """
    BaseOptions: for use by all parsers and utilities.
       Defaults are trumped by command-line arguments;
       command-line arguments are trumped by options listed in the configuration file.
    """

    def __init__(
        self,
        description,
        additional_arguments=None,
        alt_cmdline=None,
        calling_module=None,
    ):
        """
        Input:
            description - help text for the command
            additional_arguments - dictionary of additional arguments - specific
                                   to a single module
            alt_cmdline - alternate command line - a string or list of options
                          equivalent to sys.argv[1:]
            calling_module - name used to select the options that apply
        """

        self._opts = None  # Retained for debugging
        self._ap = None  # Retained for debugging

        if calling_module is None:
            calling_module = os.path.splitext(
                os.path.split(inspect.stack()[1].filename)[1]
            )[0]

        if additional_arguments is not None:
            options_dict = global_options_dict | additional_arguments
        else:
            options_dict = global_options_dict

        if "--generate_sample_conf" in (
            sys.argv if alt_cmdline is None else self._split_cmdline(alt_cmdline)
        ):
            generate_sample_conf_file(options_dict, calling_module)
            sys.exit(0)

        cp_default = {}
        for k, v in options_dict.items():
            if v.group is None or calling_module in v.group:
                setattr(self, k, v.default_val)  # Set the default for the object
            cp_default[k] = None

        cp = configparser.RawConfigParser(cp_default)

        ap = argparse.ArgumentParser(
            description=description, formatter_class=CustomFormatter
        )

        option_group_dict = {}
        for k, v in options_dict.items():
            if v.group is None or calling_module in v.group:
                gg = v.kwargs.get("option_group")
                if gg and gg not in option_group_dict:
                    option_group_dict[gg] = ap.add_argument_group(
                        gg, option_group_description.get(gg)
                    )

        # Loop over potential arguments and add what is appropriate
        for k, v in options_dict.items():
            if not (v.group is None or calling_module in v.group):
                continue
            kwargs = copy.deepcopy(v.kwargs)
            if not (v.var_type == bool and "action" in v.kwargs.keys()):
                kwargs["type"] = v.var_type
            if v.args and v.args[0].startswith("-"):
                kwargs["dest"] = k
            kwargs["default"] = v.default_val
            kwargs.pop("section", None)

            og = kwargs.pop("option_group", None)
            if og:
                option_group_dict[og].add_argument(*v.args, **kwargs)
            else:
                ap.add_argument(*v.args, **kwargs)

        self._ap = ap

        if alt_cmdline is not None:
            self._opts = ap.parse_args(self._split_cmdline(alt_cmdline))
        else:
            self._opts = ap.parse_args()

        # Initialize the object with the results of the command line parse
        for opt in dir(self._opts):
            if opt in options_dict.keys():
                setattr(self, opt, getattr(self._opts, opt))

        # Config file trumps the command line - a master set of command line options
        # can then be customized per deployment
        self.config_file_name = self._opts.config_file_name
        if self._opts.config_file_name is not None:
            if not os.path.exists(self._opts.config_file_name):
                setattr(self, "config_file_not_found", True)
            try:
                cp.read(self._opts.config_file_name)
            except Exception as exc:
                raise RuntimeError(
                    f"ERROR parsing {self._opts.config_file_name}"
                ) from exc

            for k, v in options_dict.items():
                if k == "config_file_name":
                    continue
                if not (v.group is None or calling_module in v.group):
                    continue
                section_name = v.kwargs.get("section", "base")
                if not cp.has_section(section_name):
                    continue
                if cp.get(section_name, k) is None:
                    continue
                if v.var_type == bool:
                    try:
                        value = cp.getboolean(section_name, k)
                    except ValueError as exc:
                        raise ValueError(
                            f"Could not convert {k} from {self._opts.config_file_name} to boolean"
                        ) from exc
                else:
                    value = cp.get(section_name, k)
                try:
                    val = v.var_type(value)
                except ValueError as exc:
                    raise ValueError(
                        f"Could not convert {k} from {self._opts.config_file_name} to requested type"
                    ) from exc
                if "choices" in v.kwargs and val not in v.kwargs["choices"]:
                    raise ValueError(
                        f"{val} is not a valid choice for {k} ({v.kwargs['choices']})"
                    )
                setattr(self, k, val)

    @staticmethod
    def _split_cmdline(cmdline):
        return cmdline.split() if isinstance(cmdline, str) else list(cmdline)
