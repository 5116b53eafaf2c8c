"""Request bodies accepted by the v1 API."""

from __future__ import annotations

from typing import Literal
from typing import Optional

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field


class GoogleSignIn(BaseModel):
    # extra keys are kept so impersonation fields can be rejected explicitly
    model_config = ConfigDict(extra="allow")

    credential: str
    organizationCode: Optional[str] = None
    invitationToken: Optional[str] = None
    isNewOrg: bool = False
    orgName: Optional[str] = None
    role: Optional[str] = None


class Login(BaseModel):
    email: str
    password: str


class Signup(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str
    email: str
    password: str
    organizationCode: Optional[str] = None
    invitationToken: Optional[str] = None
    isNewOrg: bool = False
    orgName: Optional[str] = None
    role: Optional[str] = None


class ForgotPassword(BaseModel):
    email: Optional[str] = None


class ResetPassword(BaseModel):
    token: Optional[str] = None
    password: Optional[str] = None


class ProgramSettings(BaseModel):
    model_config = ConfigDict(extra="allow")

    programName: str
    logo: Optional[str] = None
    accentColor: Optional[str] = None
    introText: Optional[str] = None
    fields: list = Field(default_factory=list)


class OrganizationUpdate(BaseModel):
    name: Optional[str] = None
    domain: Optional[str] = None
    logo: Optional[str] = None
    accentColor: Optional[str] = None
    programSettings: Optional[dict] = None


class ProfileUpdate(BaseModel):
    name: Optional[str] = None
    avatar: Optional[str] = None
    title: Optional[str] = None
    company: Optional[str] = None
    skills: Optional[list[str]] = None
    goals: Optional[list[str]] = None
    bio: Optional[str] = None
    experience: Optional[str] = None
    mood: Optional[str] = None
    goalsPublic: Optional[bool] = None
    acceptingNewMentees: Optional[bool] = None
    maxMentees: Optional[int] = None
    linkedinUrl: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None


class RoleChange(BaseModel):
    role: str


class InvitationCreate(BaseModel):
    email: str
    name: str = ""
    role: str


class MatchCreate(BaseModel):
    mentorId: str
    menteeId: str
    notes: Optional[str] = None


class MatchUpdate(BaseModel):
    notes: str


class GoalCreate(BaseModel):
    title: str
    description: str = ""
    dueDate: str = ""
    userId: Optional[str] = None


class GoalUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    dueDate: Optional[str] = None


class GoalProgress(BaseModel):
    progress: int
    status: Optional[Literal["Not Started", "In Progress", "Completed"]] = None


class MilestoneCreate(BaseModel):
    title: str
    dueDate: str
    description: str = ""
    visibleToMentor: bool = True
    visibleToMentee: bool = True


class MilestoneUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    dueDate: Optional[str] = None
    completed: Optional[bool] = None
    visibleToMentor: Optional[bool] = None
    visibleToMentee: Optional[bool] = None


class RatingCreate(BaseModel):
    toUserId: str
    score: int
    comment: str = ""


class EventCreate(BaseModel):
    title: str
    date: str
    startTime: str
    duration: str
    type: str = "Virtual"
    description: Optional[str] = None
    participants: list[str] = Field(default_factory=list)
    mentorId: Optional[str] = None
    menteeId: Optional[str] = None


class EventUpdate(BaseModel):
    title: Optional[str] = None
    date: Optional[str] = None
    startTime: Optional[str] = None
    duration: Optional[str] = None
    type: Optional[str] = None
    description: Optional[str] = None
    participants: Optional[list[str]] = None
    mentorId: Optional[str] = None
    menteeId: Optional[str] = None


class MeetCreate(BaseModel):
    title: str
    startTime: Optional[str] = None
    endTime: Optional[str] = None


class MessageCreate(BaseModel):
    chatType: Literal["dm", "group"] = "dm"
    text: str = ""
    type: str = "text"
    fileUrl: Optional[str] = None
    fileName: Optional[str] = None


class Reaction(BaseModel):
    emoji: str


class GroupCreate(BaseModel):
    name: str
    members: list[str] = Field(default_factory=list)
    avatar: Optional[str] = None
    id: Optional[str] = None


class GroupUpdate(BaseModel):
    name: Optional[str] = None
    avatar: Optional[str] = None
    members: Optional[list[str]] = None


class ResourceCreate(BaseModel):
    title: str
    type: str
    url: str
    description: str = ""
    fileUrl: Optional[str] = None


class BlogPost(BaseModel):
    title: Optional[str] = None
    category: Optional[str] = None
    imageUrl: Optional[str] = None
    excerpt: Optional[str] = None
    content: Optional[str] = None
    published: Optional[bool] = None


class MatchSuggestionRequest(BaseModel):
    menteeId: str


class GoalBreakdownRequest(BaseModel):
    description: str


class MilestoneSuggestionRequest(BaseModel):
    title: str
    description: str = ""
    dueDate: str


class CustomEmail(BaseModel):
    userIds: list[str]
    subject: str
    body: str
