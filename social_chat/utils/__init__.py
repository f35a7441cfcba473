from .upload_to_cloudinary import upload_to_cloudinary, delete_from_cloudinary, validate_image
from .map_to_dict import (
    map_user_to_public_dict,
    map_user_to_summary_dict,
    map_friend_request_to_public_dict,
    map_one_on_one_chat_to_public_dict,
    map_group_chat_to_public_dict,
    map_message_to_public_dict,
    map_last_message_to_public_dict
)
from .ids import to_object_id, to_object_ids
from .responses import success_response, error_response
