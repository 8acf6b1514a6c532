"""Cookie Presets Meta information.
   Cookie Presets keeps named, encrypted snapshots of browser cookie sets
   and applies them back onto a cookie jar.
"""
__title__ = 'cookie_presets'
__description__ = (
   'Encrypted named presets for browser cookie sets, '
   'with best-effort re-application onto a cookie jar.'
)
__version__ = '0.3.0'
__copyright__ = 'Copyright (c) 2023 Jesus Lara'
__author__ = 'Jesus Lara'
__author_email__ = 'jesuslarag@gmail.com'
__license__ = 'Apache-2.0'
