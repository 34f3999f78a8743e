# -*- coding: utf-8 -*-
"""Patient records service (patients + embedded clinical readings)."""
