#!/usr/bin/env python3
"""创建管理员账户脚本"""

import argparse
import asyncio
import getpass
import sys

from englishhub.app.core.database import async_session_factory
from englishhub.app.services.admin_service import AdminService


async def create_admin(email: str, password: str, full_name: str) -> bool:
    """创建管理员，成功返回 True"""
    if not password:
        raise ValueError("Mật khẩu không được để trống")

    async with async_session_factory() as session:
        admin_service = AdminService(session)
        try:
            admin = await admin_service.create_admin(
                email=email,
                password=password,
                full_name=full_name,
            )
            await session.commit()
        except ValueError as e:
            await session.rollback()
            print(f"❌ 创建失败: {e}")
            return False

    print("✅ 管理员创建成功!")
    print(f"   邮箱: {admin.email}")
    print(f"   姓名: {admin.full_name}")
    return True


def main() -> None:
    parser = argparse.ArgumentParser(description="创建管理员账户")
    parser.add_argument("--email", default="admin@englishhub.vn", help="邮箱")
    parser.add_argument("--password", default=None, help="密码")
    parser.add_argument("--name", default="Quản trị viên", help="姓名")
    args = parser.parse_args()

    # 如果密码为空，通过交互式输入获取密码
    password = args.password
    if not password:
        password = getpass.getpass("请输入管理员密码: ")
        if not password:
            print("❌ 密码不能为空，操作已取消")
            sys.exit(1)
        password_confirm = getpass.getpass("请再次输入密码确认: ")
        if password != password_confirm:
            print("❌ 两次输入的密码不一致，操作已取消")
            sys.exit(1)

    if not asyncio.run(create_admin(args.email, password, args.name)):
        sys.exit(1)


if __name__ == "__main__":
    main()
