"""
初始化数据脚本
创建：默认账号、示例房间

默认账号：
  admin     管理员   密码 admin123
  frontdesk 前台     密码 staff123

在 backend/ 目录下运行：python init_data.py
"""
import sys
sys.path.insert(0, '.')

from hoteltrack.database import SessionLocal, init_db
from hoteltrack.models.ontology import Room, RoomStatus, StaffUser, StaffRole
from hoteltrack.services.room_service import capacity_for
from hoteltrack.security.auth import get_password_hash

SAMPLE_ROOMS = [
    ("101", "Single"), ("102", "Single"), ("103", "Double"),
    ("201", "Double"), ("202", "Double"), ("203", "Family"),
    ("301", "Family"), ("302", "Family"),
]

DEFAULT_ACCOUNTS = [
    ("admin", "管理员", "admin123", StaffRole.ADMIN),
    ("frontdesk", "前台", "staff123", StaffRole.STAFF),
]


def init_staff(db):
    """初始化员工账号（已存在则跳过）"""
    created = 0
    for username, full_name, password, role in DEFAULT_ACCOUNTS:
        if db.query(StaffUser).filter(StaffUser.username == username).first():
            continue
        db.add(StaffUser(
            username=username,
            full_name=full_name,
            password_hash=get_password_hash(password),
            role=role,
            active=True,
        ))
        created += 1
    db.commit()
    print(f"员工账号: 新建 {created} 个")


def init_rooms(db):
    """初始化示例房间（已存在则跳过）"""
    created = 0
    for room_number, room_type in SAMPLE_ROOMS:
        if db.query(Room).filter(Room.room_number == room_number).first():
            continue
        db.add(Room(
            room_number=room_number,
            room_type=room_type,
            capacity=capacity_for(room_type),
            status=RoomStatus.VACANT,
        ))
        created += 1
    db.commit()
    print(f"房间: 新建 {created} 间")


def main():
    """主函数"""
    print("=" * 50)
    print("HotelTrack 初始化数据")
    print("=" * 50)

    init_db()
    print("数据库表创建完成")

    db = SessionLocal()
    try:
        init_staff(db)
        init_rooms(db)
    finally:
        db.close()

    print("初始化完成")


if __name__ == '__main__':
    main()
