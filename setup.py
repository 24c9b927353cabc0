#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
# Copyright (C) 2007-2009 Christopher Lenz
# All rights reserved.
#
# This software is licensed as described in the file COPYING, which
# you should have received as part of this distribution.

from setuptools import setup

setup(
    name='CouchDB-HTTP',
    version='1.0.0',
    description='HTTP transport for CouchDB with session renewal and rate limit backoff',
    long_description="""
    This is a Python library for talking to CouchDB over HTTP. Requests are
    sent through request and response interceptors that handle session
    cookies, IAM authentication and 429 backoff, replaying requests
    transparently when needed.""",
    author = 'Christopher Lenz',
    author_email = 'cmlenz@gmx.de',
    license = 'BSD',
    classifiers = [
        'Development Status :: 4 - Beta',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: BSD License',
        'Operating System :: OS Independent',
        'Programming Language :: Python :: 3',
        'Topic :: Database :: Front-Ends',
        'Topic :: Software Development :: Libraries :: Python Modules',
    ],
    packages = ['couchdb_http', 'couchdb_http.interceptors', 'couchdb_http.tests'],
    python_requires='>=3.7',
    install_requires=[
        "furl",
        "requests",
        "requests_toolbelt",
    ],
    test_suite='couchdb_http.tests.__main__.suite',
    zip_safe=True,
)
