"""Built-in CLI sub-commands for authhook.

* :mod:`~authhook.commands.destinations` -- list, inspect, add and remove
  registry entries.
* :mod:`~authhook.commands.call` -- send an authenticated request to a
  registered destination.
"""
