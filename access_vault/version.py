"""Access Vault Meta information.
   Access Vault keeps third-party client credentials encrypted at rest.
"""
__title__ = 'access_vault'
__description__ = (
   'Access Vault keeps third-party client credentials encrypted at rest '
   'and reveals them only to their owners.'
)
__version__ = '0.3.0'
__copyright__ = 'Copyright (c) 2025 Jesus Lara'
__author__ = 'Jesus Lara'
__author_email__ = 'jesuslarag@gmail.com'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/phenobarbital/access-vault'
