from .user import SessionUser
from .setting import PlatformSetting
