#!/usr/bin/env python3

import os
import ast
import configparser
from types import SimpleNamespace

from flightpath.utils.constants import MS_PER_MINUTE

import logging
log = logging.getLogger(__name__)

class SectionParser(object):
    true = ['true','1', 'yes', 'on']
    false = ['false', '0', 'no', 'off']

    def __init__(self, /, **kwargs):
        for k, v in kwargs.items():
            # Normalize to string for parsing while tolerating None
            sv = '' if v is None else str(v)
            s = sv.strip()

            # Detect booleans
            if s.lower() in self.true:
                parsed_val = True
            elif s.lower() in self.false:
                parsed_val = False
            # Detect list
            elif s.startswith('[') and s.endswith(']'):
                try:
                    parsed_val = ast.literal_eval(s)
                except (ValueError, SyntaxError):
                    parsed_val = s
            else:
                parsed_val = s

            self.__dict__.update({k: parsed_val})

    def __repr__(self):
        items = (f"{k}={v!r}" for k, v in self.__dict__.items())
        return "{}({})".format(type(self).__name__, ", ".join(items))

    def __eq__(self, other):
        if isinstance(other, (SectionParser, SimpleNamespace)):
            return self.__dict__ == other.__dict__
        return NotImplemented


class FPConfig(object):

    _defaults = """
[routesim]
# Minutes of ground movement reserved at each end of a flight
taxi_time_min = 10
# Minutes between precomputed route samples used for scrubbing
sample_interval_min = 5
# strftime format for sample time labels, %X is the locale clock time
time_label_format = %X

[livetrack]
# Reported speeds below this (km/h) are treated as jitter and the
# aircraft is not moved between polls
min_extrapolation_speed_kmh = 50
"""

    def __init__(self, conf_file=None):
        self.config = configparser.ConfigParser(strict=False, allow_no_value=True,
                                                comment_prefixes='/', interpolation=None)
        if not conf_file:
            self.conf_file = os.path.join(os.path.expanduser("~"), ".flightpath")
        else:
            self.conf_file = conf_file

        self.ready = self.load()


    def load(self):
        self.config.read_string(self._defaults)
        if os.path.isfile(self.conf_file):
            log.info(f"Config file found {self.conf_file} reading...")
            self.config.read(self.conf_file)
        else:
            log.debug("No config file found. Using defaults...")

        self.get_config()
        return True


    def _load_defaults_parser(self):
        """Create a ConfigParser loaded with internal defaults."""
        defaults_cp = configparser.ConfigParser(strict=False, allow_no_value=True,
                                                comment_prefixes='/', interpolation=None)
        defaults_cp.read_string(self._defaults)
        return defaults_cp

    def _is_value_valid_for_default(self, current_value, default_value):
        """Validate current_value against the type implied by default_value.

        Returns True if current_value looks valid for the default's type; False otherwise.
        """
        s = '' if current_value is None else str(current_value).strip()
        d = '' if default_value is None else str(default_value).strip()

        if d == '':
            return True

        # Numbers must stay positive numbers
        try:
            float(d)
        except ValueError:
            return s != ''
        try:
            return float(s) > 0
        except ValueError:
            return False

    def _sanitize_and_patch_config(self):
        """Ensure all values exist and are valid; fill with defaults where needed."""
        defaults_cp = self._load_defaults_parser()
        patched = False

        for sect in defaults_cp.sections():
            if not self.config.has_section(sect):
                self.config.add_section(sect)
                patched = True

            for key, def_val in defaults_cp.items(sect):
                has_opt = self.config.has_option(sect, key)
                cur_val = self.config.get(sect, key, fallback=None) if has_opt else None

                needs_default = (not has_opt) or (cur_val is None) or (str(cur_val).strip() == '')
                if not needs_default and not self._is_value_valid_for_default(cur_val, def_val):
                    log.warning(f"Invalid value {cur_val!r} for [{sect}] {key}, using default {def_val}")
                    needs_default = True

                if needs_default:
                    if key.startswith('#'):
                        # Avoid trailing '=' in comment lines
                        self.config.set(sect, key, None)
                    else:
                        self.config.set(sect, key, str(def_val))
                    patched = True

        self._patched_during_load = patched

    def get_config(self):
        # Pull info from ConfigParser object into FPConfig
        self._sanitize_and_patch_config()

        config_dict = {sect: SectionParser(**dict(self.config.items(sect))) for sect in
                self.config.sections()}
        self.__dict__.update(**config_dict)

    def save(self):
        log.info("Saving config ... ")
        self.set_config()

        with open(self.conf_file, 'w') as h:
            self.config.write(h)
        log.info(f"Wrote config file: {self.conf_file}")
        self._patched_during_load = False


    def set_config(self):
        # Push info from FPConfig into ConfigParser object
        for sect in self.config.sections():
            foo = self.__dict__.get(sect)
            for k,v in foo.__dict__.items():
                if k.startswith('#'):
                    continue
                self.config[sect][k] = str(v)

    @property
    def taxi_time_ms(self) -> float:
        return float(self.routesim.taxi_time_min) * MS_PER_MINUTE

    @property
    def sample_interval_ms(self) -> float:
        return float(self.routesim.sample_interval_min) * MS_PER_MINUTE

    @property
    def time_label_format(self) -> str:
        return self.routesim.time_label_format

    @property
    def min_extrapolation_speed_kmh(self) -> float:
        return float(self.livetrack.min_extrapolation_speed_kmh)

CFG = FPConfig()
