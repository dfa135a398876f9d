# -*- coding: utf-8
"""Tests for tcpconnection"""
