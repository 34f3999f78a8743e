# -*- coding: utf-8 -*-
"""Patients domain.

Patient documents with their clinical readings embedded in insertion order:
``models`` (payloads), ``storage`` (access layer), ``api`` (endpoints) and
``errors`` (failure conditions and their HTTP mapping).
"""
