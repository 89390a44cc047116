from .common import CamelModel

class ParentLoginIn(CamelModel):
    username: str
    password: str
class ParentLoginOut(CamelModel):
    token: str
    role: str = "Parent"
class KidSessionIn(CamelModel):
    kid_id: str
class KidSessionOut(CamelModel):
    token: str
    role: str = "Kid"
    kid_id: str
    display_name: str
