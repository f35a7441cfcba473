def pair_key(user_id: str, other_user_id: str) -> str:
    """Khóa không thứ tự cho một cặp người dùng: 'a:b' với a <= b."""
    first, second = sorted((user_id, other_user_id))
    return f"{first}:{second}"
