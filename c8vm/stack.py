#!/usr/bin/env python3

"""
Stack Emulator

The call stack is not part of addressable memory and there is no stack
pointer register exposed to the running program, so a bounded list is all
that is needed.

Only return addresses are stored.  Nesting is limited to 16 levels; pushing
beyond that, or returning with nothing saved, is an unrecoverable fault for
the running program.
"""

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"


class StackError(Exception):
    pass


class Stack:
    def __init__(self, size):
        self.items = []
        self.size = size

    def push(self, item):
        if len(self.items) >= self.size:
            raise StackError("Stack overflow")

        self.items.append(item)

    def pop(self):
        try:
            return self.items.pop()
        except IndexError:
            raise StackError("Stack underflow") from None

    def clear(self):
        self.items.clear()

    def get_items(self):
        # For debugging
        return self.items
