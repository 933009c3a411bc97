# -*- coding: utf-8 -*-
"""Pattern Builder: filename pattern inference and grouping for vehicle camera images."""

__version__ = "0.1.0"
