"""HotelTrack - 酒店前台运营控制台"""
__version__ = "1.0.0"
