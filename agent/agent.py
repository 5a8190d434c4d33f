"""
Sagittarius — Input Statistics Agent
====================================
PRIVACY: This agent only COUNTS key presses, mouse clicks and wheel notches
per key/button. It does not record typed text, key order, or timing.
Every 10 seconds the counts are sent to the stats collector; counts that
cannot be delivered are kept in stats_backup.json until they can.

Usage:
    API_SECRET=... python agent.py [--backend evdev] [--interval 10]
"""

from sagittarius.runner import run

if __name__ == "__main__":
    run()
