# -*- coding: utf-8 -*-
"""
bamdemux
~~~~~~~~

CLI tools to split alignment files by read properties

:license: MIT

"""

__version__ = "0.1.0"
