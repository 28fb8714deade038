from sociallearn.core.permissions import Permission, Role

from .blog_post import BlogPost, BlogStatus
from .institution import Country, Institution, InstitutionBase, InstitutionType
from .metric import SocialMetric, SocialMetricBase
from .ranking import Ranking, RankingType
from .site_setting import SettingType, SiteSetting
from .social_account import SocialAccount, SocialPlatform
from .user import User, UserBase

__all__ = [
    "BlogPost",
    "BlogStatus",
    "Country",
    "Institution",
    "InstitutionBase",
    "InstitutionType",
    "Permission",
    "Role",
    "SocialMetric",
    "SocialMetricBase",
    "Ranking",
    "RankingType",
    "SettingType",
    "SiteSetting",
    "SocialAccount",
    "SocialPlatform",
    "User",
    "UserBase",
]
