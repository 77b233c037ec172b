"""School discipline tracker: class-list import, demerit recording and flagging."""

__version__ = "0.1.0"
