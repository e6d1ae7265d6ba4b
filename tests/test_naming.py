from protoc_gen_bima.naming import clean_package_name, go_camel_case, go_sanitized, lower_first, to_snake


class TestGoCamelCase:
    def test_snake_case(self):
        assert go_camel_case("foo_bar") == "FooBar"
        assert go_camel_case("created_at") == "CreatedAt"
        assert go_camel_case("id") == "Id"

    def test_leading_underscore(self):
        assert go_camel_case("_foo") == "XFoo"

    def test_underscore_before_digit_kept(self):
        assert go_camel_case("foo_1") == "Foo_1"

    def test_already_camel(self):
        assert go_camel_case("TodoItem") == "TodoItem"


class TestToSnake:
    def test_words(self):
        assert to_snake("Todo") == "todo"
        assert to_snake("TodoItem") == "todo_item"

    def test_acronyms(self):
        assert to_snake("UserID") == "user_id"
        assert to_snake("JSONData") == "json_data"


class TestPackageNames:
    def test_clean_package_name(self):
        assert clean_package_name("github.com/acme/app/models") == "models"
        assert clean_package_name("example.com/my-pkg") == "my_pkg"

    def test_keyword_and_digit_prefixed(self):
        assert go_sanitized("type") == "_type"
        assert go_sanitized("1abc") == "_1abc"

    def test_lower_first(self):
        assert lower_first("DueAt") == "dueAt"
        assert lower_first("") == ""
