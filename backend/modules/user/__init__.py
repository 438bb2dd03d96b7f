"""用户模块：用户、好友、用户管理"""
