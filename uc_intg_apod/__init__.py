"""
NASA Daily Universe integration for Unfolded Circle Remote.

Shows the Astronomy Picture of the Day with loading, error and
content states and a retry action.

:copyright: (c) 2025 by Meir Miyara.
:license: MPL-2.0, see LICENSE for more details.
"""

__version__ = "0.1.0"
__author__ = "Meir Miyara"
__email__ = "meir.miyara@gmail.com"
