from typing import Optional, TypedDict


class MemberDocument(TypedDict, total=False):

    _id: str
    nickname: str
    email: Optional[str]
