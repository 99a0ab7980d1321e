"""Navigator Identity Meta information.
   Navigator Identity stores user credentials and ephemeral sessions
   on top of a keyed attribute store.
"""
__title__ = 'navigator_identity'
__description__ = (
   'Navigator Identity stores user credentials, two-factor scratch tokens '
   'and ephemeral sessions on top of a keyed attribute store.'
)
__version__ = '0.1.0'
__copyright__ = 'Copyright (c) 2023 Jesus Lara'
__author__ = 'Jesus Lara'
__author_email__ = 'jesuslarag@gmail.com'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/phenobarbital/navigator-identity'
