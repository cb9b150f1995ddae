"""
Database Schemas for the Phone-OS Portfolio

Each Pydantic model = one MongoDB collection. The collection name is given in
the model docstring. Defaults mirror what the viewers show when a row has not
been created yet.

Settings stored under app_settings are typed per key (see SETTINGS_MODELS).
"""

from datetime import date as Date
from enum import Enum
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, Field, field_validator

# Auth
class Role(str, Enum):
    admin = "admin"
    user = "user"


class User(BaseModel):
    """Collection: users"""
    email: str
    password_hash: str


class UserRole(BaseModel):
    """Collection: user_roles"""
    user_id: str
    role: Role = Role.user


# Single-row content
class AboutContent(BaseModel):
    """Collection: about_content"""
    name: str = "Suresh"
    title: Optional[str] = "UI/UX Designer"
    about_text: Optional[str] = ""
    profile_image: Optional[str] = None
    followers: Optional[int] = 1200
    experience_years: Optional[int] = 5
    skills: List[Any] = Field(default_factory=list)
    technologies: List[Any] = Field(default_factory=list)
    social_links: List[Any] = Field(default_factory=list)
    carousel_images: List[Any] = Field(default_factory=list)

    @field_validator("skills", "technologies", "social_links", "carousel_images", mode="before")
    @classmethod
    def _coerce_list(cls, v):
        # stored values that are not arrays read back as empty
        return v if isinstance(v, list) else []


class ContactSettings(BaseModel):
    """Collection: contact_settings"""
    phone_number: Optional[str] = None
    whatsapp_number: Optional[str] = None
    email_address: Optional[str] = None


class SocialLinks(BaseModel):
    """Collection: social_links"""
    facebook_url: Optional[str] = None
    instagram_url: Optional[str] = None
    tiktok_url: Optional[str] = None
    x_twitter_url: Optional[str] = None


class InfoAppSettings(BaseModel):
    """Collection: info_app_settings"""
    app_name: str = "SNetOS"
    version: str = "1.5"
    codebase: str = "Javascript"
    established_year: str = "2024"
    license: str = "SNet Cloud Nexus"
    origin: str = "Kuala Lumpur, MY"
    privacy_label: str = "Privacy Policy"
    license_label: str = "GNU AGPLv3"
    logs_label: str = "System Logs"
    acknowledgements_label: str = "Acknowledgements"


# Ordered lists
class AppItem(BaseModel):
    """Collection: app_items"""
    name: str
    icon_type: Optional[str] = "lucide"
    icon_url: Optional[str] = None
    lucide_icon: Optional[str] = "Grid"
    gradient: str = "from-blue-500 to-purple-600"
    app_type: str = "custom"
    external_url: Optional[str] = None
    sort_order: int = 0
    is_visible: bool = True
    is_dock_item: bool = False


class CaseStudyApp(BaseModel):
    """Collection: case_study_apps"""
    name: str
    description: Optional[str] = None
    icon_url: Optional[str] = None
    gradient: str = "from-blue-500 to-purple-600"
    embed_url: Optional[str] = None
    html_content: Optional[str] = None
    sort_order: int = 0
    is_visible: bool = True


class Photo(BaseModel):
    """Collection: photos"""
    title: Optional[str] = None
    image_url: str
    link_url: Optional[str] = None
    sort_order: int = 0
    is_visible: bool = True


class Video(BaseModel):
    """Collection: videos"""
    title: Optional[str] = None
    video_url: str
    thumbnail_url: Optional[str] = None
    sort_order: int = 0
    is_visible: bool = True


class GithubProject(BaseModel):
    """Collection: github_projects"""
    title: str
    description: Optional[str] = None
    cover_image_url: Optional[str] = None
    source_url: Optional[str] = None
    demo_url: Optional[str] = None
    sort_order: int = 0
    is_visible: bool = True


class WorkExperience(BaseModel):
    """Collection: work_experience"""
    company_name: str
    job_title: str
    job_description: Optional[str] = None
    year_start: str
    year_end: Optional[str] = None
    sort_order: int = 0
    is_visible: bool = True


class EducationItem(BaseModel):
    """Collection: education_items"""
    title: str = Field(..., min_length=1)
    issuer: str = Field(..., min_length=1)
    year: Optional[str] = None
    image_url: Optional[str] = None
    category: str = "institute"
    sort_order: int = 0
    is_visible: bool = True


# Notes
class Note(BaseModel):
    """Collection: notes"""
    content: str
    author_name: str = "Anonymous"

    @field_validator("content")
    @classmethod
    def _content_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Please enter a note")
        return v

    @field_validator("author_name", mode="before")
    @classmethod
    def _default_author(cls, v):
        if v is None:
            return "Anonymous"
        return str(v).strip() or "Anonymous"


class CalendarNote(BaseModel):
    """Collection: calendar_notes"""
    date: Date
    note: str = Field(..., min_length=1)


# Typed app_settings values
class WelcomeConfig(BaseModel):
    enabled: bool = True
    text: str = "Hello"
    subtext: str = "Welcome to my portfolio"
    duration: int = 5000
    gradientFrom: str = "#2563eb"
    gradientVia: str = "#9333ea"
    gradientTo: str = "#f97316"
    mainTextFont: str = "vintage"
    subtextFont: str = "sackers"
    mainTextSize: int = 72
    subtextSize: int = 20


class WelcomeNotificationConfig(BaseModel):
    enabled: bool = True
    name: str = "John Smith"
    message: str = "Welcome! Hope you're having a great day."
    gradientFrom: str = "#2563eb"
    gradientVia: str = "#9333ea"
    gradientTo: str = "#f97316"


class ControlCentreConfig(BaseModel):
    showTorch: bool = True
    showWeather: bool = True
    showInfo: bool = True
    showReboot: bool = True
    panelBgColor: str = "#1f2937"
    panelBgOpacity: int = Field(40, ge=0, le=100)
    cardBgColor: str = "#ffffff"
    cardBgOpacity: int = Field(30, ge=0, le=100)
    accentColor: str = "#8b5cf6"
    textColor: str = "#ffffff"
    borderColor: str = "#ffffff"


class SiteSeoSettings(BaseModel):
    site_title: str = ""
    site_description: str = ""
    site_keywords: str = ""
    og_title: str = ""
    og_description: str = ""
    og_image: str = ""
    twitter_card: str = "summary_large_image"
    twitter_title: str = ""
    twitter_description: str = ""
    twitter_image: str = ""
    canonical_url: str = ""
    robots: str = "index, follow"
    author: str = ""
    theme_color: str = "#667EEA"


class IframeAppsSettings(BaseModel):
    calendar_url: str = ""
    weather_url: str = ""
    goip_url: str = ""
    clock_url: str = ""
    suresh_url: str = ""


class BackgroundType(str, Enum):
    image = "image"
    url = "url"


class BackgroundSettings(BaseModel):
    type: BackgroundType = BackgroundType.image
    value: str = ""


class BootAnimation(str, Enum):
    fade = "fade"
    zoom = "zoom"
    slide = "slide"


class BootConfig(BaseModel):
    logo: str = "/assets/boot-logo.svg"
    duration: int = 3000
    progressColor: str = "#ffffff"
    backgroundColor: str = "#000000"
    animationStyle: BootAnimation = BootAnimation.fade


SETTINGS_MODELS: Dict[str, Type[BaseModel]] = {
    "welcome": WelcomeConfig,
    "welcome_notification": WelcomeNotificationConfig,
    "control_centre": ControlCentreConfig,
    "site_seo": SiteSeoSettings,
    "iframe_apps": IframeAppsSettings,
    "background": BackgroundSettings,
    "boot": BootConfig,
}
