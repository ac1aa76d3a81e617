"""
Permission and role catalog.

Permission names follow ``resource:action[:scope]``. The catalog is the single
source for seeding the ``permissions``, ``roles`` and ``role_permissions``
tables and for the role-name helpers used by authorization checks.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class PermissionDefinition:
    """A single catalog permission."""

    name: str
    display_name: str
    description: str

    @property
    def resource(self) -> str:
        return self.name.split(":")[0]

    @property
    def action(self) -> str:
        return self.name.split(":")[1]

    @property
    def scope(self) -> str | None:
        parts = self.name.split(":")
        return parts[2] if len(parts) > 2 else None


@dataclass(frozen=True)
class RoleDefinition:
    """A system role and the permission names it grants."""

    name: str
    display_name: str
    description: str
    permissions: tuple[str, ...]


def _p(name: str, display_name: str, description: str) -> PermissionDefinition:
    return PermissionDefinition(name, display_name, description)


PERMISSIONS: tuple[PermissionDefinition, ...] = (
    # User
    _p("user:view:all", "ユーザー閲覧（全体）", "全てのユーザー情報を閲覧する権限"),
    _p("user:view:company", "ユーザー閲覧（自社）", "自社のユーザー情報を閲覧する権限"),
    _p("user:view:own", "ユーザー閲覧（自分）", "自分のユーザー情報を閲覧する権限"),
    _p("user:create", "ユーザー作成", "ユーザーを作成する権限"),
    _p("user:update:all", "ユーザー更新（全体）", "全てのユーザー情報を更新する権限"),
    _p("user:update:company", "ユーザー更新（自社）", "自社のユーザー情報を更新する権限"),
    _p("user:update:own", "ユーザー更新（自分）", "自分のユーザー情報を更新する権限"),
    _p("user:delete", "ユーザー削除", "ユーザーを削除する権限"),
    _p("user:manage_role", "ロール管理", "ユーザーのロールを管理する権限"),
    # Engineer
    _p("engineer:view:all", "エンジニア閲覧（全体）", "全てのエンジニア情報を閲覧する権限"),
    _p("engineer:view:company", "エンジニア閲覧（自社）", "自社のエンジニア情報を閲覧する権限"),
    _p("engineer:view:allowed", "エンジニア閲覧（許可）", "許可されたエンジニア情報を閲覧する権限"),
    _p("engineer:create", "エンジニア作成", "エンジニアを作成する権限"),
    _p("engineer:update:all", "エンジニア更新（全体）", "全てのエンジニア情報を更新する権限"),
    _p("engineer:update:company", "エンジニア更新（自社）", "自社のエンジニア情報を更新する権限"),
    _p("engineer:delete", "エンジニア削除", "エンジニアを削除する権限"),
    _p("engineer:export", "エンジニアエクスポート", "エンジニア情報をエクスポートする権限"),
    # Skill sheet
    _p("skillsheet:view:all", "スキルシート閲覧（全体）", "全てのスキルシートを閲覧する権限"),
    _p("skillsheet:view:company", "スキルシート閲覧（自社）", "自社のスキルシートを閲覧する権限"),
    _p("skillsheet:view:allowed", "スキルシート閲覧（許可）", "許可されたスキルシートを閲覧する権限"),
    _p("skillsheet:view:own", "スキルシート閲覧（自分）", "自分のスキルシートを閲覧する権限"),
    _p("skillsheet:create", "スキルシート作成", "スキルシートを作成する権限"),
    _p("skillsheet:update:all", "スキルシート更新（全体）", "全てのスキルシートを更新する権限"),
    _p("skillsheet:update:company", "スキルシート更新（自社）", "自社のスキルシートを更新する権限"),
    _p("skillsheet:update:own", "スキルシート更新（自分）", "自分のスキルシートを更新する権限"),
    _p("skillsheet:delete", "スキルシート削除", "スキルシートを削除する権限"),
    _p("skillsheet:export", "スキルシートエクスポート", "スキルシートをエクスポートする権限"),
    # Project
    _p("project:view:all", "プロジェクト閲覧（全体）", "全てのプロジェクト情報を閲覧する権限"),
    _p("project:view:company", "プロジェクト閲覧（自社）", "自社のプロジェクト情報を閲覧する権限"),
    _p("project:view:assigned", "プロジェクト閲覧（参加）", "参加しているプロジェクト情報を閲覧する権限"),
    _p("project:create", "プロジェクト作成", "プロジェクトを作成する権限"),
    _p("project:update:all", "プロジェクト更新（全体）", "全てのプロジェクト情報を更新する権限"),
    _p("project:update:company", "プロジェクト更新（自社）", "自社のプロジェクト情報を更新する権限"),
    _p("project:delete", "プロジェクト削除", "プロジェクトを削除する権限"),
    _p("project:assign", "プロジェクトアサイン", "エンジニアをプロジェクトにアサインする権限"),
    # Business partner
    _p("partner:view:all", "取引先閲覧（全体）", "全ての取引先情報を閲覧する権限"),
    _p("partner:view:company", "取引先閲覧（自社）", "自社の取引先情報を閲覧する権限"),
    _p("partner:create", "取引先作成", "取引先を作成する権限"),
    _p("partner:update:all", "取引先更新（全体）", "全ての取引先情報を更新する権限"),
    _p("partner:update:company", "取引先更新（自社）", "自社の取引先情報を更新する権限"),
    _p("partner:delete", "取引先削除", "取引先を削除する権限"),
    _p("partner:manage", "取引先管理", "取引先の設定を管理する権限"),
    # Company
    _p("company:view:all", "企業閲覧（全体）", "全ての企業情報を閲覧する権限"),
    _p("company:view:own", "企業閲覧（自社）", "自社の企業情報を閲覧する権限"),
    _p("company:create", "企業作成", "企業を作成する権限"),
    _p("company:update:all", "企業更新（全体）", "全ての企業情報を更新する権限"),
    _p("company:update:own", "企業更新（自社）", "自社の企業情報を更新する権限"),
    _p("company:delete", "企業削除", "企業を削除する権限"),
    _p("company:manage", "企業管理", "企業の設定を管理する権限"),
    # Contract
    _p("contract:view:all", "契約閲覧（全体）", "全ての契約情報を閲覧する権限"),
    _p("contract:view:company", "契約閲覧（自社）", "自社の契約情報を閲覧する権限"),
    _p("contract:create", "契約作成", "契約を作成する権限"),
    _p("contract:update", "契約更新", "契約情報を更新する権限"),
    _p("contract:delete", "契約削除", "契約を削除する権限"),
    # Invoice
    _p("invoice:view:all", "請求閲覧（全体）", "全ての請求情報を閲覧する権限"),
    _p("invoice:view:company", "請求閲覧（自社）", "自社の請求情報を閲覧する権限"),
    _p("invoice:create", "請求作成", "請求を作成する権限"),
    _p("invoice:update", "請求更新", "請求情報を更新する権限"),
    _p("invoice:delete", "請求削除", "請求を削除する権限"),
    # Approach
    _p("approach:view:all", "アプローチ閲覧（全体）", "全てのアプローチ情報を閲覧する権限"),
    _p("approach:view:company", "アプローチ閲覧（自社）", "自社のアプローチ情報を閲覧する権限"),
    _p("approach:create", "アプローチ作成", "アプローチを作成する権限"),
    _p("approach:update", "アプローチ更新", "アプローチ情報を更新する権限"),
    _p("approach:delete", "アプローチ削除", "アプローチを削除する権限"),
    _p("approach:send", "アプローチ送信", "アプローチを送信する権限"),
    # Offer
    _p("offer:view:all", "オファー閲覧（全体）", "全てのオファー情報を閲覧する権限"),
    _p("offer:view:company", "オファー閲覧（自社）", "自社のオファー情報を閲覧する権限"),
    _p("offer:create", "オファー作成", "オファーを作成する権限"),
    _p("offer:update", "オファー更新", "オファー情報を更新する権限"),
    _p("offer:delete", "オファー削除", "オファーを削除する権限"),
    _p("offer:respond", "オファー回答", "オファーに回答する権限"),
    # Report
    _p("report:view:all", "レポート閲覧（全体）", "全てのレポートを閲覧する権限"),
    _p("report:view:company", "レポート閲覧（自社）", "自社のレポートを閲覧する権限"),
    _p("report:create", "レポート作成", "レポートを作成する権限"),
    _p("report:export", "レポートエクスポート", "レポートをエクスポートする権限"),
    # Settings
    _p("settings:view", "設定閲覧", "システム設定を閲覧する権限"),
    _p("settings:update", "設定更新", "システム設定を更新する権限"),
    _p("settings:manage", "設定管理", "システム設定を管理する権限"),
    # System
    _p("system:manage", "システム管理", "システム全体を管理する権限"),
    _p("system:backup", "バックアップ", "システムバックアップを実行する権限"),
    _p("system:restore", "リストア", "システムリストアを実行する権限"),
    _p("system:monitor", "モニタリング", "システムモニタリングを実行する権限"),
)

PERMISSION_NAMES: tuple[str, ...] = tuple(p.name for p in PERMISSIONS)

ROLES: tuple[RoleDefinition, ...] = (
    # Platform operator roles
    RoleDefinition(
        "super_admin",
        "スーパー管理者",
        "システム全体の最高権限を持つロール",
        PERMISSION_NAMES,
    ),
    RoleDefinition(
        "general_admin",
        "一般管理者",
        "システムの一般的な管理権限を持つロール",
        (
            "company:view:all", "company:create", "company:update:all", "company:manage",
            "user:view:all", "user:create", "user:update:all", "user:manage_role",
            "contract:view:all", "contract:create", "contract:update",
            "invoice:view:all", "invoice:create", "invoice:update",
            "report:view:all", "report:create", "report:export",
            "settings:view", "settings:update",
        ),
    ),
    RoleDefinition(
        "operator",
        "オペレーター",
        "サポート業務を行うロール",
        (
            "company:view:all",
            "user:view:all",
            "engineer:view:all",
            "skillsheet:view:all",
            "project:view:all",
            "partner:view:all",
            "report:view:all",
        ),
    ),
    # SES company roles
    RoleDefinition(
        "admin",
        "管理者",
        "SES企業の管理権限を持つロール",
        (
            "user:view:company", "user:create", "user:update:company", "user:delete",
            "user:manage_role",
            "engineer:view:company", "engineer:create", "engineer:update:company",
            "engineer:delete", "engineer:export",
            "skillsheet:view:company", "skillsheet:create", "skillsheet:update:company",
            "skillsheet:delete", "skillsheet:export",
            "project:view:company", "project:create", "project:update:company",
            "project:delete", "project:assign",
            "partner:view:company", "partner:create", "partner:update:company",
            "partner:delete", "partner:manage",
            "company:view:own", "company:update:own",
            "contract:view:company", "contract:create", "contract:update",
            "invoice:view:company", "invoice:create", "invoice:update",
            "approach:view:company", "approach:create", "approach:update",
            "approach:delete", "approach:send",
            "offer:view:company", "offer:create", "offer:update", "offer:delete",
            "report:view:company", "report:create", "report:export",
            "settings:view", "settings:update",
        ),
    ),
    RoleDefinition(
        "manager",
        "マネージャー",
        "ユーザー管理とプロジェクト管理権限を持つロール",
        (
            "user:view:company", "user:create", "user:update:company",
            "engineer:view:company", "engineer:create", "engineer:update:company",
            "skillsheet:view:company", "skillsheet:update:company",
            "project:view:company", "project:create", "project:update:company",
            "project:assign",
            "partner:view:company", "partner:create", "partner:update:company",
            "approach:view:company", "approach:create", "approach:update",
            "approach:send",
            "offer:view:company", "offer:create", "offer:update",
            "report:view:company", "report:create", "report:export",
        ),
    ),
    RoleDefinition(
        "sales",
        "営業",
        "取引先管理とエンジニア情報閲覧権限を持つロール",
        (
            "engineer:view:company",
            "skillsheet:view:company",
            "project:view:company",
            "partner:view:company", "partner:create", "partner:update:company",
            "approach:view:company", "approach:create", "approach:update",
            "approach:send",
            "offer:view:company", "offer:create", "offer:update",
            "report:view:company",
        ),
    ),
    RoleDefinition(
        "engineer",
        "エンジニア",
        "自身のスキルシート管理権限を持つロール",
        (
            "user:view:own", "user:update:own",
            "skillsheet:view:own", "skillsheet:update:own",
            "project:view:assigned",
        ),
    ),
    # Client company roles
    RoleDefinition(
        "client_admin",
        "取引先管理者",
        "取引先企業の管理者権限を持つロール",
        (
            "user:view:own", "user:update:own",
            "engineer:view:allowed",
            "skillsheet:view:allowed",
            "offer:view:company", "offer:respond",
            "company:view:own",
        ),
    ),
    RoleDefinition(
        "client_sales",
        "取引先営業",
        "取引先企業の営業権限を持つロール",
        (
            "user:view:own", "user:update:own",
            "engineer:view:allowed",
            "skillsheet:view:allowed",
            "offer:view:company", "offer:respond",
        ),
    ),
    RoleDefinition(
        "client_pm",
        "取引先PM",
        "取引先企業のプロジェクトマネージャー権限を持つロール",
        (
            "user:view:own", "user:update:own",
            "engineer:view:allowed",
            "skillsheet:view:allowed",
        ),
    ),
    # Freelance
    RoleDefinition(
        "freelancer",
        "フリーランス",
        "フリーランスエンジニアのロール",
        (
            "user:view:own", "user:update:own",
            "skillsheet:view:own", "skillsheet:create", "skillsheet:update:own",
            "project:view:assigned",
            "offer:view:company", "offer:respond",
        ),
    ),
)

ROLES_BY_NAME: dict[str, RoleDefinition] = {role.name: role for role in ROLES}
PERMISSIONS_BY_NAME: dict[str, PermissionDefinition] = {p.name: p for p in PERMISSIONS}

# Role name constants. Japanese names are accepted as aliases.
SES_ROLES: dict[str, str] = {
    "ADMIN": "admin",
    "SALES": "sales",
    "ENGINEER": "engineer",
    "管理者": "admin",
    "営業": "sales",
    "エンジニア": "engineer",
}

CLIENT_ROLES: dict[str, str] = {
    "CLIENT_ADMIN": "client_admin",
    "CLIENT_USER": "client_user",
    "CLIENT_PM": "client_pm",
}

FREELANCE_ROLES: dict[str, str] = {
    "FREELANCER": "freelancer",
    "フリーランス": "freelancer",
}

ENGINEER_REGISTER_ROLES: tuple[str, ...] = ("admin", "sales", "管理者", "営業")

# Engineers may edit their own data only
ENGINEER_EDIT_ROLES: tuple[str, ...] = (*ENGINEER_REGISTER_ROLES, "engineer", "エンジニア")

ENGINEER_VIEW_ROLES: tuple[str, ...] = (
    *ENGINEER_EDIT_ROLES,
    "client_admin",
    "client_user",
    "client_pm",
)

PROJECT_MANAGE_ROLES: tuple[str, ...] = ("admin", "sales", "管理者", "営業")

APPROACH_SEND_ROLES: tuple[str, ...] = ("admin", "sales", "管理者", "営業")

ROLE_DISPLAY_NAMES: dict[str, str] = {
    "admin": "管理者",
    "sales": "営業",
    "engineer": "エンジニア",
    "client_admin": "取引先管理者",
    "client_user": "取引先ユーザー",
    "client_pm": "取引先PM",
    "freelancer": "フリーランス",
    "管理者": "管理者",
    "営業": "営業",
    "エンジニア": "エンジニア",
    "フリーランス": "フリーランス",
}

ROLE_PRIORITY: dict[str, int] = {
    "admin": 100,
    "管理者": 100,
    "sales": 80,
    "営業": 80,
    "client_admin": 70,
    "client_pm": 60,
    "client_user": 50,
    "engineer": 40,
    "エンジニア": 40,
    "freelancer": 30,
    "フリーランス": 30,
}


def get_highest_role(roles: list[str] | None) -> str | None:
    """Role with the highest priority; the earliest one wins ties."""
    if not roles:
        return None
    highest = roles[0]
    for role in roles[1:]:
        if ROLE_PRIORITY.get(role, 0) > ROLE_PRIORITY.get(highest, 0):
            highest = role
    return highest


def _role_names(roles: str | Iterable[Any] | None) -> list[str]:
    if not roles:
        return []
    if isinstance(roles, str):
        return [roles]
    names: list[str] = []
    for role in roles:
        if isinstance(role, str):
            names.append(role)
        elif isinstance(role, dict) and "name" in role:
            names.append(str(role["name"]))
        elif hasattr(role, "name"):
            names.append(str(role.name))
    return names


def can_register_engineer(roles: str | Iterable[Any] | None) -> bool:
    """Accepts a role name, a list of names, or a list of objects with ``name``."""
    return any(name in ENGINEER_REGISTER_ROLES for name in _role_names(roles))
