"""Status line multiplexer for i3bar and swaybar.

Reads the i3bar protocol stream produced by i3status, runs custom commands
every cycle and writes the merged stream for the bar.
"""

__version__ = "1.0.0"
