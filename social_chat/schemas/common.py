from typing import Annotated
from pydantic import StringConstraints

# ID MongoDB dạng chuỗi hex 24 ký tự
ObjectIdStr = Annotated[str, StringConstraints(pattern=r"^[0-9a-fA-F]{24}$")]
